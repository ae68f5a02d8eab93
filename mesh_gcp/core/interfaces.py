from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from .model import (
    AccessGrant,
    Asset,
    DataProduct,
    DatasetAcl,
    DatasetDescriptor,
    DatasetRef,
    TableDescriptor,
    TableRef,
    Team,
)


@runtime_checkable
class StateRepository(Protocol):
    """Persists one opaque state mapping per connector instance."""

    def get_state(self) -> Dict[str, Any]: ...

    def save_state(self, state: Dict[str, Any]) -> None: ...


@runtime_checkable
class AssetSink(Protocol):
    """Receives asset-updated notifications produced by a sync run."""

    def on_asset_updated(self, asset: Asset) -> None: ...


@runtime_checkable
class WarehouseClient(Protocol):
    """Warehouse surface consumed by the walker and the ACL reconciler."""

    def list_projects(self) -> Iterable[str]: ...

    def list_datasets(self, project: str) -> Iterable[DatasetRef]: ...

    def get_dataset(self, ref: DatasetRef) -> Optional[DatasetDescriptor]: ...

    def list_tables(self, ref: DatasetRef, page_size: int = 1000) -> Iterable[TableRef]: ...

    def get_table(self, ref: TableRef) -> Optional[TableDescriptor]: ...

    def get_dataset_acl(self, ref: DatasetRef) -> Optional[DatasetAcl]: ...

    def update_dataset_acl(self, acl: DatasetAcl) -> None:
        """Replace the full list; fails if the dataset changed since ``acl`` was read."""


@runtime_checkable
class GovernanceClient(Protocol):
    """Governance platform surface consumed by the access handler."""

    def get_access(self, access_id: str) -> Optional[AccessGrant]: ...

    def put_access(self, grant: AccessGrant) -> None: ...

    def get_data_product(self, data_product_id: str) -> Optional[DataProduct]: ...

    def get_team(self, team_id: str) -> Optional[Team]: ...

    def put_asset(self, asset: Asset) -> None: ...

    def get_events(self, last_event_id: Optional[str] = None) -> List[Dict[str, Any]]: ...
