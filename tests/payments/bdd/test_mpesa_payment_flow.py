"""BDD tests for M-Pesa checkout."""

from pytest_bdd import scenarios

scenarios("features/mpesa_checkout.feature")
