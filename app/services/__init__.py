"""
ドメインサービス
"""

from .cache_service import catalog_cache
from .notification_service import NotificationService
from .token_service import TokenService

__all__ = [
    "catalog_cache",
    "NotificationService",
    "TokenService",
]
