# Application Cache Package
from .manager import LocalCacheManager, epoch_millis

__all__ = ["LocalCacheManager", "epoch_millis"]
