"""Configuration management"""

import os
import warnings
import yaml
from pathlib import Path
from typing import Dict, Any

from zerostat.alerts.shell import DEFAULT_ALLOWED_COMMANDS, DEFAULT_TIMEOUT_SECONDS


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        'agent': {
            'hostname': 'auto',
            'log_level': 'INFO',
            'log_file': None,
            'log_format': 'text',
        },
        'prometheus': {
            'enabled': True,
            'port': 9124,
            'host': '0.0.0.0',
        },
        'sampler': {
            'history_size': 60,
            'disk_path': '/',
        },
        'alerting': {
            'evaluation_interval': 3,
            'alert_rules_file': None,
            'action_workers': 4,
            'shell': {
                'timeout': DEFAULT_TIMEOUT_SECONDS,
                'allowed_commands': list(DEFAULT_ALLOWED_COMMANDS),
            },
            'notifications': {
                'webhook_url': '',
                'webhook_timeout': 10,
                'telegram_bot_token': '',
                'telegram_chat_id': '',
                'smtp_host': '',
                'smtp_port': 587,
                'smtp_user': '',
                'smtp_password': '',
                'smtp_to': '',
            },
            'storage': {
                'type': 'sqlite',
                'sqlite_path': './data/zerostat.db',
                'retention_days': 30,
            },
        },
    }


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from file and environment variables

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary
    """
    # Start with defaults
    config = get_default_config()

    # Load from YAML file if provided
    if config_path and Path(config_path).exists():
        try:
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config = merge_configs(config, yaml_config)
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")

    # Override with environment variables
    config = override_from_env(config)

    # Validate configuration
    validate_config(config)

    return config


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Recursively merge two configuration dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


# Environment variable -> notifications key
NOTIFICATION_ENV = {
    'WEBHOOK_URL': 'webhook_url',
    'TG_BOT_TOKEN': 'telegram_bot_token',
    'TG_CHAT_ID': 'telegram_chat_id',
    'SMTP_HOST': 'smtp_host',
    'SMTP_USER': 'smtp_user',
    'SMTP_PASS': 'smtp_password',
    'SMTP_TO': 'smtp_to',
}


def override_from_env(config: Dict) -> Dict:
    """Override configuration from environment variables"""

    # Agent settings
    if 'AGENT_HOSTNAME' in os.environ:
        config['agent']['hostname'] = os.environ['AGENT_HOSTNAME']
    if 'LOG_LEVEL' in os.environ:
        config['agent']['log_level'] = os.environ['LOG_LEVEL'].upper()
    if 'LOG_FILE' in os.environ:
        config['agent']['log_file'] = os.environ['LOG_FILE']
    if 'LOG_FORMAT' in os.environ:
        config['agent']['log_format'] = os.environ['LOG_FORMAT'].lower()

    # Prometheus settings
    if 'ZEROSTAT_PORT' in os.environ:
        config['prometheus']['port'] = int(os.environ['ZEROSTAT_PORT'])
    if 'ZEROSTAT_HOST' in os.environ:
        config['prometheus']['host'] = os.environ['ZEROSTAT_HOST']

    # Alerting settings
    if 'EVALUATION_INTERVAL' in os.environ:
        config['alerting']['evaluation_interval'] = float(os.environ['EVALUATION_INTERVAL'])

    notifications = config['alerting']['notifications']
    for env_key, config_key in NOTIFICATION_ENV.items():
        if env_key in os.environ:
            notifications[config_key] = os.environ[env_key]
    if os.environ.get('SMTP_PORT'):
        notifications['smtp_port'] = int(os.environ['SMTP_PORT'])

    return config


def validate_config(config: Dict):
    """
    Validate configuration values

    Raises:
        ValueError: If configuration is invalid
    """
    # Validate Prometheus port
    port = config['prometheus']['port']
    if not (1 <= port <= 65535):
        raise ValueError(f"Invalid Prometheus port: {port}. Must be between 1 and 65535")

    # Validate log level
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    log_level = config['agent']['log_level'].upper()
    if log_level not in valid_log_levels:
        raise ValueError(f"Invalid log level: {log_level}. Must be one of {valid_log_levels}")

    valid_log_formats = ['text', 'json']
    if config['agent']['log_format'] not in valid_log_formats:
        raise ValueError(f"Invalid log format: {config['agent']['log_format']}. Must be one of {valid_log_formats}")

    history_size = config['sampler']['history_size']
    if history_size < 2:
        raise ValueError(f"Invalid history_size: {history_size}. Must be >= 2")

    alerting = config['alerting']

    eval_interval = alerting.get('evaluation_interval', 3)
    if eval_interval <= 0:
        raise ValueError(f"Invalid evaluation_interval: {eval_interval}. Must be > 0")

    if alerting.get('action_workers', 4) < 1:
        raise ValueError(f"Invalid action_workers: {alerting['action_workers']}. Must be >= 1")

    shell_timeout = alerting['shell'].get('timeout', DEFAULT_TIMEOUT_SECONDS)
    if shell_timeout <= 0:
        raise ValueError(f"Invalid shell timeout: {shell_timeout}. Must be > 0")

    if not isinstance(alerting['shell'].get('allowed_commands', []), list):
        raise ValueError("shell.allowed_commands must be a list")

    notifications = alerting['notifications']
    smtp_port = notifications.get('smtp_port', 587)
    if notifications.get('smtp_host') and not (1 <= int(smtp_port) <= 65535):
        raise ValueError(f"Invalid smtp_port: {smtp_port}. Must be between 1 and 65535")

    if not any([
        notifications.get('webhook_url'),
        notifications.get('telegram_bot_token') and notifications.get('telegram_chat_id'),
        notifications.get('smtp_host') and notifications.get('smtp_to'),
    ]):
        warnings.warn("No notification channel configured; alerts will only be logged")

    # Validate storage
    storage_type = alerting['storage'].get('type', 'sqlite')
    if storage_type != 'sqlite':
        raise ValueError(f"Unsupported storage type: {storage_type}. Only 'sqlite' is currently supported")

    retention_days = alerting['storage'].get('retention_days', 30)
    if retention_days < 1:
        raise ValueError(f"Invalid retention_days: {retention_days}. Must be >= 1")
