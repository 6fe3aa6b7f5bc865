"""
Prometheus Metrics

Defines all metrics exposed by the risk engine. Metrics are critical for:
- Latency monitoring (vendor calls sit on the hot path)
- Verdict distribution (risk levels over time)
- Degradation visibility (vendor failures, cache outages)
"""

from prometheus_client import Counter, Histogram


class RiskMetrics:
    """
    Container for all Prometheus metrics.

    Organized by category:
    - Analysis metrics
    - Device/IP metrics
    - Vendor metrics
    - Cache metrics
    """

    def __init__(self):
        """Initialize all metrics."""

        # =====================================================================
        # Analysis Metrics
        # =====================================================================
        self.requests_total = Counter(
            "riskintel_requests_total",
            "Total number of API requests",
            labelnames=["endpoint"],
        )

        self.analyses_total = Counter(
            "riskintel_analyses_total",
            "Fraud analyses by resulting risk level",
            labelnames=["risk_level", "cached"],
        )

        self.analysis_latency = Histogram(
            "riskintel_analysis_latency_ms",
            "End-to-end analysis latency in milliseconds",
            buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
        )

        self.overall_score_distribution = Histogram(
            "riskintel_overall_score",
            "Distribution of overall fraud scores",
            buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
        )

        self.stage_failures = Counter(
            "riskintel_stage_failures_total",
            "Pipeline stages that failed and were dropped",
            labelnames=["stage"],
        )

        # =====================================================================
        # Device/IP Metrics
        # =====================================================================
        self.device_ip_assessments = Counter(
            "riskintel_device_ip_assessments_total",
            "Device/IP composite assessments by risk level",
            labelnames=["risk_level"],
        )

        # =====================================================================
        # Vendor Metrics
        # =====================================================================
        self.vendor_failures = Counter(
            "riskintel_vendor_failures_total",
            "Vendor calls that failed or timed out",
            labelnames=["vendor", "reason"],
        )

        self.vendor_latency = Histogram(
            "riskintel_vendor_latency_ms",
            "Vendor call latency in milliseconds",
            labelnames=["vendor"],
            buckets=[10, 25, 50, 100, 250, 500, 1000, 2500, 5000],
        )

        # =====================================================================
        # Cache Metrics
        # =====================================================================
        self.cache_operations = Counter(
            "riskintel_cache_operations_total",
            "Signal cache operations by namespace and outcome",
            labelnames=["namespace", "outcome"],
        )


# Global metrics instance
metrics = RiskMetrics()
