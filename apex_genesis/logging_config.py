import logging
import sys
from typing import Any, Dict, Union

ROOT_LOGGER_NAME = "apex_genesis"


def _to_numeric_level(log_level: Union[str, int]) -> int:
    if isinstance(log_level, str):
        numeric_level = getattr(logging, log_level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(
                f"Invalid log level: {log_level}. Valid levels: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        return numeric_level
    return log_level


def _reset_handlers(logger: logging.Logger):
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


def setup_logging(
    log_level: Union[str, int] = "INFO", detailed_websockets: bool = False
) -> logging.Logger:
    """
    Setup logging for the connection layer and the transports it drives.

    Args:
        log_level: String log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
            or a numeric logging level
        detailed_websockets: Whether to enable detailed websocket handshake logging

    Returns:
        The package root logger
    """
    numeric_level = _to_numeric_level(log_level)

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d:%(funcName)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    simple_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    apex_logger = logging.getLogger(ROOT_LOGGER_NAME)
    apex_logger.setLevel(numeric_level)
    _reset_handlers(apex_logger)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(detailed_formatter)
    console_handler.setLevel(numeric_level)
    apex_logger.addHandler(console_handler)

    # The websocket probe opens and drops a socket on every check, which is
    # noisy below INFO unless explicitly requested.
    websockets_logger = logging.getLogger("websockets")
    _reset_handlers(websockets_logger)
    websockets_level = (
        max(numeric_level, logging.DEBUG)
        if detailed_websockets
        else max(numeric_level, logging.WARNING)
    )
    websockets_logger.setLevel(websockets_level)
    websockets_logger.propagate = False

    websocket_handler = logging.StreamHandler(sys.stdout)
    websocket_handler.setFormatter(
        detailed_formatter if detailed_websockets else simple_formatter
    )
    websocket_handler.setLevel(websockets_level)
    websockets_logger.addHandler(websocket_handler)

    # httpx logs every request at INFO; health checks run every few seconds.
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))
    logging.getLogger("httpcore").setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger("asyncio").setLevel(max(numeric_level, logging.WARNING))

    component_configs = {
        "apex_genesis.connection": numeric_level,
        "apex_genesis.probes": numeric_level,
        "apex_genesis.config": numeric_level,
    }

    for component_name, level in component_configs.items():
        logging.getLogger(component_name).setLevel(level)

    apex_logger.info(f"Apex Genesis logging initialized with level: {log_level}")
    if detailed_websockets:
        apex_logger.debug("Detailed websocket logging enabled")

    return apex_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module within the package.

    Args:
        name: The name of the module/component requesting the logger

    Returns:
        A logger placed under the package root logger
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        if name == "__main__":
            logger_name = f"{ROOT_LOGGER_NAME}.main"
        elif "." in name:
            module_parts = name.split(".")
            logger_name = f"{ROOT_LOGGER_NAME}.{module_parts[-2]}.{module_parts[-1]}"
        else:
            logger_name = f"{ROOT_LOGGER_NAME}.{name}"
    else:
        logger_name = name

    return logging.getLogger(logger_name)


def configure_component_logging(
    component_name: str, level: Union[str, int]
) -> logging.Logger:
    """
    Configure logging for a specific component with a custom level.

    Args:
        component_name: Name of the component (e.g., 'connection', 'probes')
        level: Log level for this component

    Returns:
        The configured logger for the component
    """
    logger = get_logger(component_name)
    logger.setLevel(_to_numeric_level(level))
    return logger


def get_logging_stats() -> Dict[str, Any]:
    apex_logger = logging.getLogger(ROOT_LOGGER_NAME)
    websockets_logger = logging.getLogger("websockets")
    httpx_logger = logging.getLogger("httpx")

    return {
        "main_level": logging.getLevelName(apex_logger.level),
        "websockets_level": logging.getLevelName(websockets_logger.level),
        "httpx_level": logging.getLevelName(httpx_logger.level),
        "handlers_count": {
            "apex_genesis": len(apex_logger.handlers),
            "websockets": len(websockets_logger.handlers),
            "httpx": len(httpx_logger.handlers),
        },
        "effective_levels": {
            "apex_genesis": logging.getLevelName(apex_logger.getEffectiveLevel()),
            "websockets": logging.getLevelName(websockets_logger.getEffectiveLevel()),
            "httpx": logging.getLevelName(httpx_logger.getEffectiveLevel()),
        },
    }
