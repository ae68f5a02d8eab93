from __future__ import annotations

from typing import Dict, Union

from mesh_gcp.core.model import Asset, AssetColumn, DatasetDescriptor, TableDescriptor

SOURCE = "gcp"
STATUS_ACTIVE = "active"


class AssetMapper:
    """Converts warehouse descriptors into platform asset documents."""

    def map(self, descriptor: Union[DatasetDescriptor, TableDescriptor]) -> Asset:
        if isinstance(descriptor, TableDescriptor):
            return self.map_table(descriptor)
        if isinstance(descriptor, DatasetDescriptor):
            return self.map_dataset(descriptor)
        raise TypeError(f"Unsupported descriptor: {type(descriptor).__name__}")

    def map_dataset(self, dataset: DatasetDescriptor) -> Asset:
        return Asset(
            id=dataset.generated_id or str(dataset.ref),
            name=dataset.friendly_name or dataset.ref.dataset,
            qualified_name=str(dataset.ref),
            type="dataset",
            description=dataset.description,
            status=STATUS_ACTIVE,
            source=SOURCE,
            properties=self._properties(dataset.last_modified),
        )

    def map_table(self, table: TableDescriptor) -> Asset:
        return Asset(
            id=table.generated_id or str(table.ref),
            name=table.friendly_name or table.ref.table,
            qualified_name=str(table.ref),
            type=table.definition_type,
            description=table.description,
            status=STATUS_ACTIVE,
            source=SOURCE,
            columns=[AssetColumn(name=f.name, type=f.type, description=f.description) for f in table.fields],
            properties=self._properties(table.last_modified),
        )

    @staticmethod
    def _properties(last_modified) -> Dict[str, str]:
        if last_modified is None:
            return {}
        return {"updatedAt": str(last_modified)}
