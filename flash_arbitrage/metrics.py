"""
Prometheus metrics for the flash arbitrage bot.

Exposes solve/execute outcome counters, solve latency and realized profit.
"""

import logging
import threading
from typing import Optional, Tuple

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, start_http_server

from .types import ArbitrageResult

logger = logging.getLogger(__name__)


class ArbitrageMetrics:
    """
    Arbitrage metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Execution attempts, settlements and aborts by reason
    - No-trade outcomes and solve latency
    - Realized profit per asset (atomic units)
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        # Thread-safe access
        self._lock = threading.RLock()

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === EXECUTION METRICS ===
        self.attempts_total = Counter(
            "flash_arbitrage_attempts_total",
            "Total number of arbitrage executions attempted",
            registry=self.registry,
        )

        self.settlements_total = Counter(
            "flash_arbitrage_settlements_total",
            "Total number of arbitrage executions settled",
            ["direction"],
            registry=self.registry,
        )

        self.aborts_total = Counter(
            "flash_arbitrage_aborts_total",
            "Total number of arbitrage executions rolled back",
            ["reason"],
            registry=self.registry,
        )

        self.no_trade_total = Counter(
            "flash_arbitrage_no_trade_total",
            "Total solves that found no profitable trade",
            registry=self.registry,
        )

        # === SOLVER METRICS ===
        self.solve_duration_seconds = Histogram(
            "flash_arbitrage_solve_duration_seconds",
            "Time spent searching for the optimal trade size",
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry,
        )

        # === P&L METRICS ===
        self.realized_profit_total = Counter(
            "flash_arbitrage_realized_profit_total",
            "Realized profit in atomic units of each asset",
            ["asset"],
            registry=self.registry,
        )

    # === METRIC RECORDING METHODS ===

    def record_attempt(self):
        with self._lock:
            self.attempts_total.inc()

    def record_abort(self, reason: str):
        """Record a rolled-back execution"""
        with self._lock:
            self.aborts_total.labels(reason=reason).inc()

    def record_no_trade(self):
        with self._lock:
            self.no_trade_total.inc()

    def record_solve_duration(self, seconds: float):
        with self._lock:
            self.solve_duration_seconds.observe(seconds)

    def record_settlement(self, result: ArbitrageResult, assets: Tuple[str, str]):
        """Record a settled execution and its profit"""
        with self._lock:
            self.settlements_total.labels(direction=result.direction.value).inc()
            for asset, change in zip(assets, (result.balance_change0, result.balance_change1)):
                if change > 0:
                    self.realized_profit_total.labels(asset=asset).inc(change)

    def start_server(self, port: int, addr: str = "0.0.0.0"):
        """Expose the registry over HTTP for scraping"""
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info(f"Metrics server started on {addr}:{port}")
