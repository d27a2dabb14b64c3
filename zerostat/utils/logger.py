"""Logging setup for the agent process"""

import logging
import sys
from pathlib import Path
from pythonjsonlogger import jsonlogger

ROOT_LOGGER = 'zerostat'

TEXT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s (%(threadName)s) - %(message)s'
JSON_FIELDS = '%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s'


def _build_formatter(log_format):
    if log_format == 'json':
        return jsonlogger.JsonFormatter(
            JSON_FIELDS,
            rename_fields={'asctime': 'timestamp', 'levelname': 'level', 'name': 'logger'}
        )
    return logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%dT%H:%M:%S')


def setup_logger(config):
    """
    Configure the 'zerostat' logger tree from the agent section

    Security events (zerostat.security) always pass through at WARNING,
    even when the configured level is higher.

    Args:
        config: Configuration dictionary

    Returns:
        The root 'zerostat' logger
    """
    agent_config = config.get('agent', {})
    level = getattr(logging, agent_config.get('log_level', 'INFO').upper(), logging.INFO)
    formatter = _build_formatter(agent_config.get('log_format', 'text'))

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = agent_config.get('log_file')
    file_error = None
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            file_error = e

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logging.getLogger(f'{ROOT_LOGGER}.security').setLevel(min(level, logging.WARNING))

    if file_error is not None:
        logger.warning(f"Logging to stdout only, cannot open {log_file}: {file_error}")

    return logger


def get_logger(name):
    """Child of the 'zerostat' logger"""
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')
