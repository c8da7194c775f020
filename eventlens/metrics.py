"""
Prometheus metrics for the EventLens service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class Metrics:
    """
    Centralized metrics for the EventLens service.
    """

    def __init__(self, service_name: str = "eventlens", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "route", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "route"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            registry=self.registry,
        )

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Query metrics
        self.queries_total = Counter(
            "eventlens_queries_total",
            "Total event store queries",
            ["store", "status"],
            registry=self.registry,
        )

        self.query_duration = Histogram(
            "eventlens_query_duration_seconds",
            "Event store query duration in seconds",
            ["store"],
            registry=self.registry,
        )

        self.events_returned = Histogram(
            "eventlens_events_returned",
            "Events returned per successful query",
            ["store"],
            buckets=(0, 1, 10, 50, 100, 250, 500, 1000),
            registry=self.registry,
        )

    def observe_request(self, method: str, route: str, status: int, duration_s: float):
        """Record one HTTP request against its route template."""
        self.http_requests_total.labels(
            service=self.service_name, method=method, route=route, status=status
        ).inc()
        self.http_request_duration.labels(
            service=self.service_name, method=method, route=route
        ).observe(duration_s)

    def record_query(self, store: str, status: str, duration_s: float, returned: int = 0):
        """Record one store query."""
        self.queries_total.labels(store=store, status=status).inc()
        self.query_duration.labels(store=store).observe(duration_s)
        if status == "ok":
            self.events_returned.labels(store=store).observe(returned)
