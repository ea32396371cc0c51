"""Capability interfaces ("ingredients") that recipes can implement."""

from authcore.ingredients.emaildelivery import (
    EmailDelivery,
    EmailDeliveryRequest,
    EmailVerification,
    PasswordlessLogin,
    PasswordReset,
    parse_email_request,
)

__all__ = [
    "EmailDelivery",
    "EmailDeliveryRequest",
    "EmailVerification",
    "PasswordReset",
    "PasswordlessLogin",
    "parse_email_request",
]
