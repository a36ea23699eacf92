"""Logging configuration module for the basket service."""

import sys
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    serialize: bool = False,
) -> loguru_logger:
    """Configure the process-wide loguru sinks for a service.

    Args:
        service_name: Name of the service (e.g., 'basket-service')
        log_level: Logging level (default: INFO)
        log_file: Optional path to a rotating log file
        serialize: Emit one JSON document per record instead of the coloured format

    Returns:
        logger: loguru logger bound to the service name
    """
    # Remove any existing handlers
    loguru_logger.remove()
    loguru_logger.configure(extra={"service": service_name})

    loguru_logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=CONSOLE_FORMAT,
        colorize=not serialize,
        serialize=serialize,
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        loguru_logger.add(
            log_file,
            level=log_level.upper(),
            format=FILE_FORMAT,
            serialize=serialize,
            rotation="10 MB",
            retention="1 week",
            compression="gz",
        )

    return loguru_logger.bind(service=service_name)


def get_component_logger(service_name: str, component: str) -> loguru_logger:
    """Get a logger for one component of a service (store, producer, ...).

    Unlike setup_service_logger this does not touch the configured sinks.

    Args:
        service_name: Name of the service
        component: Component name, appended to the service name

    Returns:
        logger: Logger bound with service and component context
    """
    return loguru_logger.bind(service=f"{service_name}.{component}", component=component)
