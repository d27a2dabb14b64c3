"""Prometheus HTTP exporter"""

from prometheus_client import start_http_server, Gauge, Counter
from prometheus_client.core import CollectorRegistry
from zerostat.utils.logger import get_logger


class PrometheusExporter:
    """Prometheus HTTP server exposing the latest snapshot and alert activity"""

    def __init__(self, config, registry=None):
        """
        Initialize Prometheus exporter

        Args:
            config: Configuration dictionary
            registry: Registry to use; a private one is created by default
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)

        self.host = config.get('prometheus', {}).get('host', '0.0.0.0')
        self.port = config.get('prometheus', {}).get('port', 9124)

        self.registry = registry or CollectorRegistry()
        self.running = False
        self._server = None

        self._setup_host_metrics()
        self._setup_alert_metrics()

    def _setup_host_metrics(self):
        """Gauges mirroring the latest snapshot"""
        self.cpu_usage_percent = Gauge(
            'zerostat_cpu_usage_percent',
            'Overall CPU usage percentage',
            registry=self.registry
        )
        self.memory_usage_percent = Gauge(
            'zerostat_memory_usage_percent',
            'Memory usage percentage',
            registry=self.registry
        )
        self.disk_usage_percent = Gauge(
            'zerostat_disk_usage_percent',
            'Disk usage percentage of the monitored mount point',
            registry=self.registry
        )
        self.network_receive_rate = Gauge(
            'zerostat_network_receive_bytes_per_second',
            'Network receive rate in bytes per second',
            registry=self.registry
        )
        self.network_transmit_rate = Gauge(
            'zerostat_network_transmit_bytes_per_second',
            'Network transmit rate in bytes per second',
            registry=self.registry
        )
        self.collector_status = Gauge(
            'zerostat_collector_status',
            'Collector status (1=healthy, 0=unhealthy)',
            ['collector'],
            registry=self.registry
        )

    def _setup_alert_metrics(self):
        """Evaluator and dispatcher metrics"""
        self.alert_rules = Gauge(
            'zerostat_alert_rules',
            'Number of alert rules by state',
            ['state'],
            registry=self.registry
        )
        self.alerts_fired = Counter(
            'zerostat_alerts_fired_total',
            'Alerts dispatched',
            ['metric', 'kind'],
            registry=self.registry
        )
        self.evaluation_duration = Gauge(
            'zerostat_evaluation_duration_seconds',
            'Duration of the last evaluation pass',
            registry=self.registry
        )

    def start(self):
        """Start HTTP server"""
        try:
            self.logger.info(f"Starting Prometheus HTTP server on {self.host}:{self.port}")
            self._server, _ = start_http_server(self.port, addr=self.host, registry=self.registry)
            self.running = True
            self.logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")
        except Exception as e:
            self.logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise

    def stop(self):
        """Stop HTTP server"""
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        self.running = False
        self.logger.info("Prometheus HTTP server stopped")

    def update_snapshot(self, snapshot):
        """Publish the latest snapshot"""
        self.cpu_usage_percent.set(snapshot.cpu_percent)
        self.memory_usage_percent.set(snapshot.memory_percent)
        self.disk_usage_percent.set(snapshot.disk_percent)
        self.network_receive_rate.set(snapshot.net_rx_rate)
        self.network_transmit_rate.set(snapshot.net_tx_rate)

    def update_collectors(self, collectors):
        """Publish collector health"""
        for collector in collectors:
            status = 1 if collector.is_healthy() else 0
            self.collector_status.labels(collector=collector.get_name()).set(status)

    def update_rule_counts(self, counts):
        """
        Publish rule counts

        Args:
            counts: Dict of state name to number of rules
        """
        for state, count in counts.items():
            self.alert_rules.labels(state=state).set(count)

    def record_alert(self, rule, is_recovery):
        """Count a dispatched alert or recovery"""
        kind = 'recovery' if is_recovery else 'alert'
        self.alerts_fired.labels(metric=rule.metric, kind=kind).inc()
