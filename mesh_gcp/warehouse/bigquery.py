from __future__ import annotations

from typing import Iterable, Optional, Sequence

from google.api_core.exceptions import NotFound
from google.cloud import bigquery, resourcemanager_v3

from mesh_gcp.common import PrintLogger, to_epoch_millis
from mesh_gcp.config import ConnectorConfig
from mesh_gcp.core.model import (
    AclEntry,
    DatasetAcl,
    DatasetDescriptor,
    DatasetRef,
    Principal,
    PrincipalKind,
    SchemaFieldDescriptor,
    TableDescriptor,
    TableRef,
    role_name,
)

_ENTITY_TYPES = {
    "userByEmail": PrincipalKind.USER,
    "groupByEmail": PrincipalKind.GROUP,
}
_NATIVE_ENTITY_TYPES = {kind: entity_type for entity_type, kind in _ENTITY_TYPES.items()}


class BigQueryWarehouse:
    """WarehouseClient backed by the BigQuery and Resource Manager APIs."""

    def __init__(
        self,
        client: bigquery.Client,
        projects_client: Optional[resourcemanager_v3.ProjectsClient] = None,
        *,
        projects: Optional[Sequence[str]] = None,
        logger: Optional[PrintLogger] = None,
    ) -> None:
        self.client = client
        self.projects_client = projects_client
        self.projects = list(projects) if projects else None
        self.logger = logger

    @classmethod
    def from_config(cls, config: ConnectorConfig, logger: Optional[PrintLogger] = None) -> "BigQueryWarehouse":
        projects = config.projects or None
        client = bigquery.Client(project=config.billing_project)
        projects_client = None if projects else resourcemanager_v3.ProjectsClient()
        return cls(client, projects_client, projects=projects, logger=logger)

    # ------------------------------------------------------------- listing --
    def list_projects(self) -> Iterable[str]:
        if self.projects is not None:
            yield from self.projects
            return
        if self.projects_client is None:
            raise RuntimeError("Resource Manager client required to discover projects")
        request = resourcemanager_v3.SearchProjectsRequest()
        for project in self.projects_client.search_projects(request=request):
            yield project.project_id

    def list_datasets(self, project: str) -> Iterable[DatasetRef]:
        for item in self.client.list_datasets(project=project, include_all=True):
            yield DatasetRef(item.project, item.dataset_id)

    def list_tables(self, ref: DatasetRef, page_size: int = 1000) -> Iterable[TableRef]:
        for item in self.client.list_tables(self._dataset_reference(ref), page_size=page_size):
            yield TableRef(item.project, item.dataset_id, item.table_id)

    # ---------------------------------------------------------- descriptors --
    def get_dataset(self, ref: DatasetRef) -> Optional[DatasetDescriptor]:
        dataset = self._fetch_dataset(ref)
        if dataset is None:
            return None
        return DatasetDescriptor(
            ref=ref,
            generated_id=dataset.full_dataset_id,
            friendly_name=dataset.friendly_name,
            description=dataset.description,
            last_modified=to_epoch_millis(dataset.modified),
        )

    def get_table(self, ref: TableRef) -> Optional[TableDescriptor]:
        table_ref = bigquery.TableReference(self._dataset_reference(ref.dataset_ref), ref.table)
        try:
            table = self.client.get_table(table_ref)
        except NotFound:
            return None
        fields = [
            SchemaFieldDescriptor(name=f.name, type=f.field_type, description=f.description)
            for f in (table.schema or [])
        ]
        return TableDescriptor(
            ref=ref,
            generated_id=table.full_table_id,
            friendly_name=table.friendly_name,
            description=table.description,
            definition_type=table.table_type,
            last_modified=to_epoch_millis(table.modified),
            fields=fields,
        )

    # ------------------------------------------------------------------ acl --
    def get_dataset_acl(self, ref: DatasetRef) -> Optional[DatasetAcl]:
        dataset = self._fetch_dataset(ref)
        if dataset is None:
            return None
        return DatasetAcl(
            ref=ref,
            entries=[self._to_acl_entry(entry) for entry in (dataset.access_entries or [])],
            etag=dataset.etag,
            native=dataset,
        )

    def update_dataset_acl(self, acl: DatasetAcl) -> None:
        """Write ``acl.entries`` onto the dataset object it was read from.

        ``update_dataset`` sends that object's etag as If-Match, so a dataset
        changed since the read raises ``PreconditionFailed``.
        """
        if acl.native is None:
            raise ValueError(f"ACL for {acl.ref} was not read through this warehouse")
        dataset = acl.native
        dataset.access_entries = [self._to_native(entry) for entry in acl.entries]
        self.client.update_dataset(dataset, ["access_entries"])
        if self.logger:
            self.logger.debug("bigquery_acl_updated", dataset=str(acl.ref), entries=len(acl.entries), etag=acl.etag)

    # -------------------------------------------------------------- helpers --
    def _fetch_dataset(self, ref: DatasetRef):
        try:
            return self.client.get_dataset(self._dataset_reference(ref))
        except NotFound:
            return None

    @staticmethod
    def _dataset_reference(ref: DatasetRef) -> bigquery.DatasetReference:
        return bigquery.DatasetReference(ref.project, ref.dataset)

    @staticmethod
    def _to_acl_entry(entry: bigquery.AccessEntry) -> AclEntry:
        kind = _ENTITY_TYPES.get(entry.entity_type)
        principal = Principal(kind, str(entry.entity_id)) if kind is not None and entry.entity_id else None
        return AclEntry(role=entry.role, principal=principal, native=entry)

    @staticmethod
    def _to_native(entry: AclEntry) -> bigquery.AccessEntry:
        if entry.native is not None:
            return entry.native
        if entry.principal is None:
            raise ValueError("ACL entry without principal or native entry cannot be written")
        return bigquery.AccessEntry(
            role=role_name(entry.role),
            entity_type=_NATIVE_ENTITY_TYPES[entry.principal.kind],
            entity_id=entry.principal.identifier,
        )
