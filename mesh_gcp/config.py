from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .core.model import AclRole

API_KEY_ENV = "DATAMESH_MANAGER_API_KEY"


@dataclass
class RuntimeConfig:
    job_name: str = "mesh-gcp"
    log_file: Optional[str] = None
    log_level: str = "INFO"
    max_workers: int = 2
    queue_capacity: int = 25
    sync_interval_seconds: int = 3600
    poll_interval_seconds: int = 5
    state_dir: Optional[str] = None


@dataclass
class ClientConfig:
    host: str
    api_key: str
    timeout_seconds: float = 30.0


@dataclass
class AssetsConfig:
    enabled: bool = False
    connector_id: str = "gcp-assets"
    page_size: int = 1000


@dataclass
class AccessManagementConfig:
    enabled: bool = False
    connector_id: str = "gcp-access"
    role: AclRole = AclRole.READER
    team_custom_field: str = "gcpGroup"
    data_product_custom_field: str = "gcpServiceAccount"


@dataclass
class ConnectorConfig:
    runtime: RuntimeConfig
    client: ClientConfig
    assets: AssetsConfig
    access: AccessManagementConfig
    projects: List[str] = field(default_factory=list)
    billing_project: Optional[str] = None


def validate_config(cfg: Dict[str, Any]) -> None:
    for key in ["client", "gcp"]:
        if key not in cfg:
            raise ValueError(f"Missing config key: {key}")
    client = cfg["client"]
    if not client.get("host"):
        raise ValueError("Missing client.host")
    if not client.get("api_key") and not os.environ.get(API_KEY_ENV):
        raise ValueError(f"Missing client.api_key (or {API_KEY_ENV} environment variable)")
    gcp = cfg["gcp"]
    assets = gcp.get("assets", {})
    access = gcp.get("accessmanagement", {})
    if not assets.get("enabled") and not access.get("enabled"):
        raise ValueError("Neither gcp.assets nor gcp.accessmanagement is enabled")
    if access.get("enabled"):
        AclRole.parse(access.get("role", "READER"))
        mapping = access.get("mapping", {})
        for key in ["dataproduct", "team"]:
            if not mapping.get(key, {}).get("customfield"):
                raise ValueError(f"Missing gcp.accessmanagement.mapping.{key}.customfield")
    runtime = cfg.get("runtime", {})
    for key in ["max_workers", "sync_interval_seconds", "poll_interval_seconds"]:
        if key in runtime and int(runtime[key]) < 1:
            raise ValueError(f"runtime.{key} must be positive")


def build_config(cfg: Dict[str, Any]) -> ConnectorConfig:
    validate_config(cfg)
    runtime_cfg = cfg.get("runtime", {})
    client_cfg = cfg["client"]
    gcp_cfg = cfg["gcp"]
    assets_cfg = gcp_cfg.get("assets", {})
    access_cfg = gcp_cfg.get("accessmanagement", {})
    mapping = access_cfg.get("mapping", {})

    runtime = RuntimeConfig(
        job_name=str(runtime_cfg.get("job_name", "mesh-gcp")),
        log_file=runtime_cfg.get("log_file"),
        log_level=str(runtime_cfg.get("log_level", "INFO")).upper(),
        max_workers=int(runtime_cfg.get("max_workers", 2)),
        queue_capacity=int(runtime_cfg.get("queue_capacity", 25)),
        sync_interval_seconds=int(runtime_cfg.get("sync_interval_seconds", 3600)),
        poll_interval_seconds=int(runtime_cfg.get("poll_interval_seconds", 5)),
        state_dir=runtime_cfg.get("state_dir"),
    )
    client = ClientConfig(
        host=str(client_cfg["host"]),
        api_key=str(client_cfg.get("api_key") or os.environ.get(API_KEY_ENV, "")),
        timeout_seconds=float(client_cfg.get("timeout_seconds", 30.0)),
    )
    assets = AssetsConfig(
        enabled=bool(assets_cfg.get("enabled", False)),
        connector_id=str(assets_cfg.get("connector_id") or assets_cfg.get("connectorid") or "gcp-assets"),
        page_size=int(assets_cfg.get("page_size", 1000)),
    )
    access = AccessManagementConfig(
        enabled=bool(access_cfg.get("enabled", False)),
        connector_id=str(access_cfg.get("connector_id") or access_cfg.get("connectorid") or "gcp-access"),
        role=AclRole.parse(access_cfg.get("role", "READER")),
        team_custom_field=str(mapping.get("team", {}).get("customfield", "gcpGroup")),
        data_product_custom_field=str(mapping.get("dataproduct", {}).get("customfield", "gcpServiceAccount")),
    )
    return ConnectorConfig(
        runtime=runtime,
        client=client,
        assets=assets,
        access=access,
        projects=list(gcp_cfg.get("projects") or []),
        billing_project=gcp_cfg.get("billing_project"),
    )


def load_config(path: str) -> ConnectorConfig:
    with open(path, "r", encoding="utf-8") as handle:
        cfg = json.load(handle)
    return build_config(cfg)
