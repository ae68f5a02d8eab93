import argparse
import signal
import threading
from typing import List, Optional

from .access import AccessReconciliationHandler, AclReconciler, IdentityResolver, ProviderResolver
from .common import PrintLogger
from .config import ConnectorConfig, load_config
from .events import Emitter, StateEventSubscriber, StructuredLogSubscriber, emit_log
from .governance import DataMeshManagerClient, EventPoller, GovernanceAssetSink
from .runtime import ConnectorContext, EventLoop, SyncLoop, WorkerPool
from .state import WatermarkStore, build_state_store
from .sync import AssetMapper, AssetWalker, SyncEngine
from .warehouse import BigQueryWarehouse


def build_context(
    config: ConnectorConfig,
    logger: PrintLogger,
    *,
    warehouse=None,
    client=None,
    only: Optional[str] = None,
) -> ConnectorContext:
    """Wire warehouse, platform client, state and loops for the enabled features."""
    emitter = Emitter()
    emitter.subscribe(StructuredLogSubscriber(logger, job_name=config.runtime.job_name))
    if client is None:
        client = DataMeshManagerClient(
            config.client.host,
            config.client.api_key,
            timeout=config.client.timeout_seconds,
        )
    pool = WorkerPool(
        max_workers=config.runtime.max_workers,
        queue_capacity=config.runtime.queue_capacity,
        name_prefix=f"{config.runtime.job_name}-agent",
    )
    context = ConnectorContext(config=config, logger=logger, emitter=emitter, pool=pool, closeables=[client])

    run_assets = config.assets.enabled and only in (None, "assets")
    run_access = config.access.enabled and only in (None, "access")
    if (run_assets or run_access) and warehouse is None:
        warehouse = BigQueryWarehouse.from_config(config, logger)

    if run_assets:
        state = build_state_store(config.assets.connector_id, config.runtime.state_dir, logger)
        watermarks = WatermarkStore(state)
        emitter.subscribe(StateEventSubscriber(watermarks))
        engine = SyncEngine(
            AssetWalker(warehouse, logger, page_size=config.assets.page_size),
            AssetMapper(),
            watermarks,
            logger,
            emitter=emitter,
            connector_id=config.assets.connector_id,
        )
        context.sync_loop = SyncLoop(
            engine,
            GovernanceAssetSink(client, logger),
            config.runtime.sync_interval_seconds,
            logger,
            emitter=emitter,
        )

    if run_access:
        state = build_state_store(config.access.connector_id, config.runtime.state_dir, logger)
        handler = AccessReconciliationHandler(
            client,
            ProviderResolver(client),
            IdentityResolver(
                client,
                team_custom_field=config.access.team_custom_field,
                data_product_custom_field=config.access.data_product_custom_field,
                logger=logger,
            ),
            AclReconciler(warehouse, logger),
            config.access.role,
            logger,
            emitter=emitter,
        )
        context.event_loop = EventLoop(
            EventPoller(client, state, logger),
            handler,
            config.runtime.poll_interval_seconds,
            logger,
            emitter=emitter,
        )
    return context


def main(
    config: ConnectorConfig,
    args: Optional[argparse.Namespace] = None,
    base_logger: Optional[PrintLogger] = None,
    stop_event: Optional[threading.Event] = None,
) -> ConnectorContext:
    args = args or argparse.Namespace()
    logger = base_logger or PrintLogger(
        job_name=config.runtime.job_name,
        file_path=config.runtime.log_file,
        level=config.runtime.log_level,
    )
    context = build_context(config, logger, only=getattr(args, "only", None))
    if context.sync_loop is None and context.event_loop is None:
        emit_log(context.emitter, level="WARN", msg="nothing_to_run", only=getattr(args, "only", None))
        context.stop()
        return context

    emit_log(
        context.emitter,
        level="INFO",
        msg="connector_start",
        assets=context.sync_loop is not None,
        access=context.event_loop is not None,
        once=bool(getattr(args, "once", False)),
    )
    if getattr(args, "once", False):
        try:
            context.run_once()
        finally:
            context.stop()
        emit_log(context.emitter, level="INFO", msg="connector_end")
        return context

    stop_event = stop_event or threading.Event()
    context.start()
    try:
        stop_event.wait()
    finally:
        finished = context.stop()
        emit_log(context.emitter, level="INFO", msg="connector_end", clean_shutdown=finished)
    return context


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync BigQuery assets and access grants with Data Mesh Manager")
    parser.add_argument("--config", required=True)
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one asset sync and one event poll, then exit",
    )
    parser.add_argument(
        "--only",
        choices=["assets", "access"],
        default=None,
        help="Restrict the run to one of the enabled features",
    )
    return parser.parse_args(argv)


def run_cli(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    logger = PrintLogger(
        job_name=config.runtime.job_name,
        file_path=config.runtime.log_file,
        level=config.runtime.log_level,
    )
    stop_event = threading.Event()

    def _request_stop(signum, _frame) -> None:
        logger.info("connector_stop_requested", signal=signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)
    main(config, args=args, base_logger=logger, stop_event=stop_event)


__all__ = ["build_context", "main", "parse_args", "run_cli"]
