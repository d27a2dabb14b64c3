"""Command line entry point for the ZeroStat agent"""

import sys
import argparse

from zerostat import __version__
from zerostat.alerts.alert_manager import AlertManager
from zerostat.alerts.channels import CHANNEL_CLASSES
from zerostat.config.settings import load_config
from zerostat.utils.helpers import resolve_hostname
from zerostat.utils.logger import setup_logger
from zerostat.agent import Agent

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='zerostat',
        description='Host monitor with stateful threshold alerts, notifications and automation'
    )
    parser.add_argument('--config', '-c', default=None,
                        help='YAML configuration file')
    parser.add_argument('--log-level', '-l', choices=LOG_LEVELS, default=None,
                        help='Override agent.log_level')
    parser.add_argument('--test-notification', metavar='CHANNEL',
                        choices=sorted(CHANNEL_CLASSES),
                        help='Send the test message through CHANNEL and exit')
    parser.add_argument('--version', '-v', action='version',
                        version=f'ZeroStat v{__version__}')
    return parser.parse_args(argv)


def send_test_notification(config, channel):
    """Deliver the fixed test message synchronously; 0 on success"""
    manager = AlertManager(
        config['alerting']['notifications'],
        hostname=resolve_hostname(config['agent'].get('hostname')),
        max_workers=1,
    )
    try:
        return 0 if manager.send_test_notification(channel) else 1
    finally:
        manager.shutdown()


def main(argv=None):
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        if args.log_level:
            config['agent']['log_level'] = args.log_level

        logger = setup_logger(config)
        source = args.config or 'built-in defaults'
        logger.info(f"ZeroStat v{__version__} (configuration: {source})")

        if args.test_notification:
            return send_test_notification(config, args.test_notification)

        Agent(config).start()
        return 0

    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
