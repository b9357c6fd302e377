"""Process-wide logging configuration."""

import logging
import sys


def config_setup_logging(log_level: str = "INFO") -> None:
    """Configure root logging to stdout with a uniform line format.

    Args:
        log_level: Logging level name (`DEBUG`, `INFO`, `WARNING`, `ERROR`, `CRITICAL`).

    Returns:
        None: Handlers are installed on the root logger as side effect.

    Raises:
        ValueError: Raised when log level name is unknown.
    """

    resolved_level = logging.getLevelName(log_level.strip().upper())
    if not isinstance(resolved_level, int):
        raise ValueError(f"unsupported log_level={log_level}")

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)
    root_logger.setLevel(resolved_level)

    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
