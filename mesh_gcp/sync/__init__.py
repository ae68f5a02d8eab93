from .engine import SyncEngine, SyncReport
from .mapper import AssetMapper
from .walker import AssetWalker

__all__ = ["AssetMapper", "AssetWalker", "SyncEngine", "SyncReport"]
