from .client import DataMeshManagerClient
from .events import EventPoller
from .sinks import GovernanceAssetSink

__all__ = ["DataMeshManagerClient", "EventPoller", "GovernanceAssetSink"]
