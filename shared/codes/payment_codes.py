"""
Payment specific codes and gateway status tables.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    MALFORMED_RESPONSE = 60005
    UNKNOWN_STATUS = 60006


# Skrill refund status codes as reported by the refund API (<status> element)
SKRILL_COMPLETE = 2
SKRILL_PENDING = 0
SKRILL_REJECTED = -1
SKRILL_FAILED = -2
SKRILL_CHARGEBACK = -3

# Gateway code -> gateway vocabulary (see domain.order.entity.GatewayStatus)
SKRILL_REFUND_STATUSES = {
    SKRILL_CHARGEBACK: "chargeback",
    SKRILL_FAILED: "failed",
    SKRILL_REJECTED: "rejected",
    SKRILL_PENDING: "pending",
    SKRILL_COMPLETE: "complete",
}

# Gateway vocabulary -> canonical refund outcome status
GATEWAY_STATUS_TO_REFUND_OUTCOME = {
    "complete": "success",
    "pending": "pending",
    "failed": "failed",
    "rejected": "failed",
    "chargeback": "failed",
}

# Skrill failed_reason_code / refund error codes
SKRILL_ERROR_TEXTS = {
    "01": "Referred by card issuer",
    "02": "Invalid merchant, merchant account inactive",
    "03": "Pick-up card",
    "04": "Declined by card issuer",
    "05": "Insufficient funds",
    "06": "Merchant/NETELLER/processor declined",
    "07": "Incorrect PIN",
    "08": "PIN tries exceed, card blocked",
    "09": "Invalid transaction",
    "10": "Transaction frequency limit exceeded",
    "11": "Invalid amount format, amount too high or too low",
    "12": "Invalid or expired card",
    "13": "Invalid card expiry date",
    "14": "Invalid card number",
    "15": "Expired card",
    "19": "Card restricted",
    "20": "Amount limit exceeded",
    "22": "Transaction declined by bank",
    "24": "Card blocked",
    "28": "Lost or stolen card",
    "32": "Card number mismatch",
    "33": "Refund limit reached",
    "99": "General error",
    "LOGIN_INVALID": "Merchant email or API password is invalid",
    "CANNOT_LOGIN": "Merchant account cannot log in",
    "INVALID_REC_PAYMENT_ID": "Invalid transaction reference",
    "TRANSACTION_NOT_FOUND": "Transaction not found",
    "ALREADY_EXECUTED": "Refund already executed",
    "REFUND_AMOUNT_TOO_HIGH": "Refund amount exceeds the original payment",
    "NOT_ALLOWED_TO_REFUND": "Refunds are not enabled for this merchant",
    "SESSION_EXPIRED": "Refund session expired",
}


def skrill_error_text(code: str | int | None) -> str:
    """Human readable reason for a Skrill error code."""
    if code is None or code == "":
        return "Refund was not successful"
    key = str(code).strip().upper()
    if key.isdigit():
        key = key.zfill(2)
    return SKRILL_ERROR_TEXTS.get(key, f"Unknown error ({code})")
