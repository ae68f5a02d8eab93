"""
Connector between Data Mesh Manager and Google BigQuery.

Synchronises BigQuery datasets and tables into the platform's asset catalog
and reconciles dataset ACLs with access activations and deactivations.
"""

from .common import RUN_ID, PrintLogger, next_event_seq
from .config import ConnectorConfig, build_config, load_config, validate_config
from .orchestrator import build_context, main, run_cli

__all__ = [
    "RUN_ID",
    "ConnectorConfig",
    "PrintLogger",
    "build_config",
    "build_context",
    "load_config",
    "main",
    "next_event_seq",
    "run_cli",
    "validate_config",
]
