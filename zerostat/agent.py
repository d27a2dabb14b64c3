"""Main agent orchestration"""

import signal
import threading
import time
from typing import Dict, Any, Optional

from zerostat.utils.logger import get_logger
from zerostat.utils.helpers import resolve_hostname
from zerostat.alerts.alert_evaluator import AlertEvaluator
from zerostat.alerts.alert_manager import AlertManager
from zerostat.alerts.alert_rule import load_alert_rules
from zerostat.alerts.rule_store import RuleStore
from zerostat.alerts.shell import ShellExecutor
from zerostat.alerts.storage.sqlite_storage import SQLiteStorage
from zerostat.exporters.prometheus_exporter import PrometheusExporter
from zerostat.metrics.sampler import MetricsSampler

# Evaluation passes between alert history cleanups
CLEANUP_EVERY_PASSES = 100


class Agent:
    """Owns the sampler, rule store, dispatcher and evaluator for the process lifetime"""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize agent

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self._stop_event = threading.Event()
        self.evaluator_thread: Optional[threading.Thread] = None
        self._passes_since_cleanup = 0

        self.hostname = resolve_hostname(config['agent'].get('hostname'))

        self.logger.info(f"Initializing agent for host: {self.hostname}")

        self.exporter = None
        if config.get('prometheus', {}).get('enabled', True):
            self.exporter = PrometheusExporter(config)

        self._init_alerting()

    def _init_alerting(self):
        """Wire storage, rule store, sampler, dispatcher and evaluator"""
        alerting = self.config['alerting']

        self.storage = SQLiteStorage(alerting['storage'])
        self.sampler = MetricsSampler.from_config(self.config)

        self.rule_store = RuleStore(storage=self.storage)
        if self.rule_store.load() == 0:
            self._seed_rules(alerting.get('alert_rules_file'))

        shell_config = alerting['shell']
        shell_executor = ShellExecutor(
            allowed_commands=shell_config.get('allowed_commands'),
            timeout=shell_config.get('timeout', 30),
        )

        self.alert_manager = AlertManager(
            alerting['notifications'],
            shell_executor=shell_executor,
            storage=self.storage,
            hostname=self.hostname,
            max_workers=alerting.get('action_workers', 4),
            on_fire=self.exporter.record_alert if self.exporter else None,
        )

        self.alert_evaluator = AlertEvaluator(self.rule_store, self.sampler, self.alert_manager)

        self.logger.info(f"Alerting initialized with {len(self.rule_store)} rules")

    def _seed_rules(self, rules_file: Optional[str]):
        """Populate an empty store from the YAML rules file, if any"""
        if not rules_file:
            self.logger.info("No stored rules and no alert rules file specified")
            return

        try:
            rules = load_alert_rules(rules_file)
        except (FileNotFoundError, ValueError) as e:
            self.logger.error(f"Failed to seed rules from {rules_file}: {e}")
            return

        self.rule_store.replace_rules(rules)

    def _setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown"""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            self.stop()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    @property
    def running(self) -> bool:
        return self.evaluator_thread is not None and not self._stop_event.is_set()

    def start(self, block: bool = True):
        """
        Start the agent

        Args:
            block: Keep the calling thread alive until stop() is called
        """
        self.logger.info("Starting agent...")
        self._stop_event.clear()

        try:
            if self.exporter:
                self.exporter.start()

            self.evaluator_thread = threading.Thread(
                target=self._run_alert_evaluator_loop,
                daemon=True,
                name="alert-evaluator"
            )
            self.evaluator_thread.start()
            self.logger.info("Started alert evaluator thread")

            if not block:
                return

            self._setup_signal_handlers()
            while not self._stop_event.wait(1):
                pass

        except KeyboardInterrupt:
            self.logger.info("Keyboard interrupt received")
            self.stop()
        except Exception as e:
            self.logger.error(f"Agent error: {e}", exc_info=True)
            self.stop()
            raise

    def stop(self):
        """Stop the agent"""
        if self._stop_event.is_set():
            return

        self.logger.info("Stopping agent...")
        self._stop_event.set()

        if self.evaluator_thread and self.evaluator_thread is not threading.current_thread():
            self.evaluator_thread.join(timeout=5)

        # Queued actions are dropped; running ones are bounded by their own
        # timeouts and must finish before storage closes
        self.alert_manager.shutdown(wait=True, cancel_futures=True)
        self.storage.close()

        if self.exporter:
            self.exporter.stop()

        self.logger.info("Agent stopped")

    def run_tick(self):
        """One evaluation pass plus its bookkeeping"""
        snapshot = self.alert_evaluator.evaluate_all_rules()

        if self.exporter:
            self.exporter.update_snapshot(snapshot)
            self.exporter.update_collectors(self.sampler.collectors)
            self.exporter.update_rule_counts(self.rule_store.counts())
            self.exporter.evaluation_duration.set(self.alert_evaluator.last_pass_duration)

        unhealthy = self.sampler.unhealthy_collectors()
        if unhealthy:
            self.logger.warning(f"Unhealthy collectors: {', '.join(unhealthy)}")

        self._passes_since_cleanup += 1
        if self._passes_since_cleanup >= CLEANUP_EVERY_PASSES:
            self._passes_since_cleanup = 0
            try:
                self.storage.cleanup_old_events(self.storage.retention_days)
            except Exception as e:
                self.logger.error(f"Failed to cleanup old alert events: {e}")

    def _run_alert_evaluator_loop(self):
        """
        Tick every evaluation_interval seconds until stopped.

        Ticks are scheduled against fixed deadlines; a pass that overruns
        delays the next tick instead of skipping it.
        """
        interval = self.config['alerting']['evaluation_interval']

        self.logger.debug(f"Starting alert evaluator loop (interval: {interval}s)")

        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.run_tick()
            except Exception as e:
                self.logger.error(f"Error in alert evaluator loop: {e}", exc_info=True)

            next_tick += interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                self.logger.debug(f"Evaluation pass overran the interval by {-delay:.2f}s")
                next_tick = time.monotonic()
                delay = 0
            if self._stop_event.wait(delay):
                break
