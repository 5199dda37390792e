from db.storage import (
    BANK_ACCOUNT,
    CREDIT_CARD,
    PAYMENT,
    RecordNotFoundError,
    StorageRecord,
    StorageService,
)

__all__ = [
    "BANK_ACCOUNT",
    "CREDIT_CARD",
    "PAYMENT",
    "RecordNotFoundError",
    "StorageRecord",
    "StorageService",
]
