"""Short, human-readable order codes.

Codes are generated on the till at finalization time: a fixed prefix plus six
characters from an alphabet without look-alikes (no I, O, 0 or 1), giving
32**6 (about 1.07e9) codes per prefix.
"""

import secrets

ORDER_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ORDER_ID_PREFIX = "ORD"
ORDER_ID_LENGTH = 6


def generate_order_id(prefix: str = ORDER_ID_PREFIX) -> str:
    return prefix + "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))
