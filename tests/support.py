"""In-memory stand-ins for the warehouse and the governance platform."""

import copy
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import PreconditionFailed

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.model import (
    AccessGrant,
    AclEntry,
    Asset,
    DataProduct,
    DatasetAcl,
    DatasetDescriptor,
    DatasetRef,
    SchemaFieldDescriptor,
    TableDescriptor,
    TableRef,
    Team,
)


def quiet_logger() -> PrintLogger:
    return PrintLogger(job_name="test", level="ERROR")


class FakeWarehouse:
    def __init__(self) -> None:
        self.datasets: Dict[DatasetRef, Dict[str, Any]] = {}
        self.project_order: List[str] = []
        self.acl_updates: List[DatasetRef] = []
        self.fail_acl_writes = 0

    def add_dataset(self, project: str, dataset: str, last_modified: Optional[int], acl=None, **kw) -> DatasetRef:
        ref = DatasetRef(project, dataset)
        if project not in self.project_order:
            self.project_order.append(project)
        self.datasets[ref] = {
            "descriptor": DatasetDescriptor(
                ref=ref,
                generated_id=f"{project}:{dataset}",
                last_modified=last_modified,
                **kw,
            ),
            "tables": {},
            "acl": acl,
            "version": 1,
        }
        return ref

    def add_table(self, project: str, dataset: str, table: str, last_modified: Optional[int], fields=None, **kw) -> TableRef:
        ref = TableRef(project, dataset, table)
        self.datasets[ref.dataset_ref]["tables"][table] = TableDescriptor(
            ref=ref,
            generated_id=f"{project}:{dataset}.{table}",
            definition_type=kw.pop("definition_type", "TABLE"),
            last_modified=last_modified,
            fields=fields or [SchemaFieldDescriptor("id", "INTEGER")],
            **kw,
        )
        return ref

    def touch_table(self, ref: TableRef, last_modified: int) -> None:
        self.datasets[ref.dataset_ref]["tables"][ref.table].last_modified = last_modified

    def acl(self, ref: DatasetRef) -> List[AclEntry]:
        return list(self.datasets[ref]["acl"] or [])

    # WarehouseClient
    def list_projects(self):
        return list(self.project_order)

    def list_datasets(self, project: str):
        return [ref for ref in self.datasets if ref.project == project]

    def get_dataset(self, ref: DatasetRef):
        entry = self.datasets.get(ref)
        return copy.deepcopy(entry["descriptor"]) if entry else None

    def list_tables(self, ref: DatasetRef, page_size: int = 1000):
        entry = self.datasets.get(ref)
        if not entry:
            return []
        return [tbl.ref for tbl in entry["tables"].values()]

    def get_table(self, ref: TableRef):
        entry = self.datasets.get(ref.dataset_ref)
        if not entry or ref.table not in entry["tables"]:
            return None
        return copy.deepcopy(entry["tables"][ref.table])

    def get_dataset_acl(self, ref: DatasetRef):
        entry = self.datasets.get(ref)
        if entry is None:
            return None
        return DatasetAcl(ref=ref, entries=list(entry["acl"] or []), etag=str(entry["version"]))

    def update_dataset_acl(self, acl: DatasetAcl) -> None:
        entry = self.datasets[acl.ref]
        if self.fail_acl_writes > 0:
            self.fail_acl_writes -= 1
            raise ConnectionError("warehouse unavailable")
        if acl.etag != str(entry["version"]):
            raise PreconditionFailed(f"dataset {acl.ref} changed since it was read")
        entry["acl"] = list(acl.entries)
        entry["version"] += 1
        self.acl_updates.append(acl.ref)

    def change_acl_elsewhere(self, ref: DatasetRef, entries) -> None:
        entry = self.datasets[ref]
        entry["acl"] = list(entries)
        entry["version"] += 1


class CollectingAssetSink:
    """Keeps reported assets in memory."""

    def __init__(self) -> None:
        self.assets: List[Asset] = []

    def on_asset_updated(self, asset: Asset) -> None:
        self.assets.append(asset)


class FakeGovernance:
    def __init__(self) -> None:
        self.accesses: Dict[str, Dict[str, Any]] = {}
        self.data_products: Dict[str, Dict[str, Any]] = {}
        self.teams: Dict[str, Dict[str, Any]] = {}
        self.assets: Dict[str, Asset] = {}
        self.events: List[Dict[str, Any]] = []
        self.access_writes = 0
        self.data_product_reads: List[str] = []
        self.team_reads: List[str] = []

    def add_provider(self, dp_id: str, port_id: str, project: Optional[str], dataset: Optional[str]) -> None:
        server = {"project": project, "dataset": dataset}
        self.data_products[dp_id] = {"id": dp_id, "outputPorts": [{"id": port_id, "server": server}]}

    def add_access(self, access_id: str, provider: Optional[Dict[str, Any]], consumer: Optional[Dict[str, Any]], tags=None) -> None:
        self.accesses[access_id] = {
            "id": access_id,
            "info": {"purpose": "analytics"},
            "provider": provider,
            "consumer": consumer,
            "tags": list(tags or []),
        }

    def tags(self, access_id: str) -> List[str]:
        return list(self.accesses[access_id].get("tags") or [])

    # GovernanceClient
    def get_access(self, access_id: str):
        doc = self.accesses.get(access_id)
        return AccessGrant.from_document(copy.deepcopy(doc)) if doc else None

    def put_access(self, grant: AccessGrant) -> None:
        self.accesses[grant.id] = grant.to_document()
        self.access_writes += 1

    def get_data_product(self, data_product_id: str):
        self.data_product_reads.append(data_product_id)
        doc = self.data_products.get(data_product_id)
        return DataProduct.from_document(doc) if doc else None

    def get_team(self, team_id: str):
        self.team_reads.append(team_id)
        doc = self.teams.get(team_id)
        return Team.from_document(doc) if doc else None

    def put_asset(self, asset: Asset) -> None:
        self.assets[asset.id] = asset

    def get_events(self, last_event_id: Optional[str] = None):
        if last_event_id is None:
            return list(self.events)
        ids = [e["id"] for e in self.events]
        if last_event_id not in ids:
            return list(self.events)
        return self.events[ids.index(last_event_id) + 1:]

    def close(self) -> None:
        pass
