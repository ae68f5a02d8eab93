from __future__ import annotations

from typing import Optional

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import GovernanceClient
from mesh_gcp.core.model import Asset


class GovernanceAssetSink:
    """Upserts every reported asset into the platform catalog."""

    def __init__(self, client: GovernanceClient, logger: Optional[PrintLogger] = None) -> None:
        self.client = client
        self.logger = logger

    def on_asset_updated(self, asset: Asset) -> None:
        self.client.put_asset(asset)
        if self.logger:
            self.logger.info("asset_published", asset_id=asset.id, qualified_name=asset.qualified_name)
