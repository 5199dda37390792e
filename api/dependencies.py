from fastapi import Depends

from core.dependencies import get_settings
from core.settings import Settings
from db.session import get_session_factory
from db.storage import StorageService
from payments.bridge import PaymentBridge


def get_storage(settings: Settings = Depends(get_settings)) -> StorageService:
    """Storage service over the configured database."""
    return StorageService(get_session_factory(settings))


def get_bridge(
    settings: Settings = Depends(get_settings),
    storage: StorageService = Depends(get_storage),
) -> PaymentBridge:
    return PaymentBridge.from_settings(settings, storage)
