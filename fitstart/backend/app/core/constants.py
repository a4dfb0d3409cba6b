"""Common application-wide constants."""

# Metadata for system-driven booking cancellations
PAYMENT_TIMEOUT_REASON = "payment_timeout"
SYSTEM_ACTOR = "system"

SIGNATURE_MISMATCH_ACTION = "payment_signature_mismatch"

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


__all__ = [
    "PAYMENT_TIMEOUT_REASON",
    "SYSTEM_ACTOR",
    "SIGNATURE_MISMATCH_ACTION",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
