from .interfaces import AssetSink, GovernanceClient, StateRepository, WarehouseClient
from .model import (
    AccessGrant,
    AclEntry,
    AclRole,
    Asset,
    AssetColumn,
    Consumer,
    DataProduct,
    DatasetAcl,
    DatasetDescriptor,
    DatasetRef,
    OutputPort,
    PlatformEvent,
    Principal,
    PrincipalKind,
    Provider,
    SchemaFieldDescriptor,
    Server,
    TableDescriptor,
    TableRef,
    Team,
    role_name,
)
from .result import Resolution

__all__ = [
    "AccessGrant",
    "AclEntry",
    "AclRole",
    "Asset",
    "AssetColumn",
    "AssetSink",
    "Consumer",
    "DataProduct",
    "DatasetAcl",
    "DatasetDescriptor",
    "DatasetRef",
    "GovernanceClient",
    "OutputPort",
    "PlatformEvent",
    "Principal",
    "PrincipalKind",
    "Provider",
    "Resolution",
    "SchemaFieldDescriptor",
    "Server",
    "StateRepository",
    "TableDescriptor",
    "TableRef",
    "Team",
    "WarehouseClient",
    "role_name",
]
