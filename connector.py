from mesh_gcp import (
    RUN_ID,
    PrintLogger,
    main,
    run_cli,
    validate_config,
)

__all__ = [
    "RUN_ID",
    "PrintLogger",
    "main",
    "run_cli",
    "validate_config",
]


if __name__ == "__main__":
    run_cli()
