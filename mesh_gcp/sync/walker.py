from __future__ import annotations

from typing import Iterator, Optional, Union

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import WarehouseClient
from mesh_gcp.core.model import DatasetDescriptor, TableDescriptor

Descriptor = Union[DatasetDescriptor, TableDescriptor]


class AssetWalker:
    """Lazily enumerates project -> dataset -> table descriptors.

    Each dataset descriptor is yielded before the tables it contains. Entities
    that disappear between listing and fetching are skipped.
    """

    def __init__(self, warehouse: WarehouseClient, logger: PrintLogger, page_size: int = 1000) -> None:
        self.warehouse = warehouse
        self.logger = logger
        self.page_size = page_size

    def walk(self) -> Iterator[Descriptor]:
        for project in self.warehouse.list_projects():
            self.logger.info("sync_project", project=project)
            yield from self.walk_project(project)

    def walk_project(self, project: str) -> Iterator[Descriptor]:
        for dataset_ref in self.warehouse.list_datasets(project):
            self.logger.info("sync_dataset", dataset=str(dataset_ref))
            dataset: Optional[DatasetDescriptor] = self.warehouse.get_dataset(dataset_ref)
            if dataset is None:
                self.logger.warn("sync_dataset_vanished", dataset=str(dataset_ref))
                continue
            yield dataset
            for table_ref in self.warehouse.list_tables(dataset_ref, page_size=self.page_size):
                self.logger.debug("sync_table", table=str(table_ref))
                table = self.warehouse.get_table(table_ref)
                if table is None:
                    self.logger.warn("sync_table_vanished", table=str(table_ref))
                    continue
                yield table
