"""
Metrics and Monitoring Module
Tracks request and engine metrics for observability
"""

import logging
import threading
from typing import Dict, Any, Optional
from datetime import datetime
from collections import defaultdict

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects application metrics"""

    def __init__(self):
        """Initialize metrics collector"""
        self._lock = threading.Lock()
        self.start_time = datetime.now()
        self.request_count = 0
        self.error_count = 0
        self.request_times = defaultdict(list)
        self.engine_calls = defaultdict(int)
        self.recommendations_served = 0
        self.events_batch_added = 0

    def record_request(self, endpoint: str, duration: float, status: int):
        """Record API request"""
        with self._lock:
            self.request_count += 1
            self.request_times[endpoint].append(duration)
            if status >= 400:
                self.error_count += 1

    def record_engine_call(self, operation: str):
        """Record an engine operation"""
        with self._lock:
            self.engine_calls[operation] += 1

    def record_recommendations(self, count: int):
        """Record how many recommendations a run returned"""
        with self._lock:
            self.recommendations_served += count

    def record_batch_add(self, added: int):
        """Record events added through a batch"""
        with self._lock:
            self.events_batch_added += added

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics"""
        with self._lock:
            uptime = (datetime.now() - self.start_time).total_seconds()

            avg_times = {}
            for endpoint, times in self.request_times.items():
                if times:
                    avg_times[endpoint] = sum(times) / len(times)

            return {
                'uptime_seconds': uptime,
                'total_requests': self.request_count,
                'total_errors': self.error_count,
                'error_rate': (self.error_count / self.request_count * 100) if self.request_count > 0 else 0,
                'average_response_times': avg_times,
                'engine_calls': dict(self.engine_calls),
                'recommendations_served': self.recommendations_served,
                'events_batch_added': self.events_batch_added,
                'timestamp': datetime.now().isoformat()
            }

    def reset(self):
        """Reset metrics"""
        with self._lock:
            self.request_count = 0
            self.error_count = 0
            self.request_times.clear()
            self.engine_calls.clear()
            self.recommendations_served = 0
            self.events_batch_added = 0


# Global metrics instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get global metrics instance"""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
