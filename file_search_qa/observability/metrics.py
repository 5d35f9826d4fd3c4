import threading
from collections import defaultdict
from typing import Dict, List


# Bounded latency history for percentile calculation
MAX_LATENCY_SAMPLES = 1000

POLL_OUTCOMES = ("done", "failed", "timeout", "cancelled", "error")


class MetricsTracker:
    """
    In-process request and polling metrics.

    Nothing is persisted: the service is stateless between restarts.
    """

    def __init__(self):

        self._lock = threading.Lock()

        self._requests = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "total_latency": 0.0,
        }

        self._latencies: List[float] = []

        # kind -> outcome -> count, plus attempt totals per kind
        self._polls: Dict[str, Dict[str, int]] = defaultdict(
            lambda: {**{o: 0 for o in POLL_OUTCOMES}, "attempts": 0}
        )

    def record_success(self, latency: float):

        with self._lock:

            self._requests["total_requests"] += 1
            self._requests["successful_requests"] += 1
            self._requests["total_latency"] += latency

            self._latencies.append(latency)

            if len(self._latencies) > MAX_LATENCY_SAMPLES:
                del self._latencies[0]

    def record_failure(self):

        with self._lock:

            self._requests["total_requests"] += 1
            self._requests["failed_requests"] += 1

    def record_poll(self, kind: str, outcome: str, attempts: int):

        if outcome not in POLL_OUTCOMES:
            raise ValueError(f"Unknown poll outcome: {outcome}")

        with self._lock:

            self._polls[kind][outcome] += 1
            self._polls[kind]["attempts"] += attempts

    def get_latency_percentile(self, percentile: float) -> float:

        with self._lock:
            latencies = sorted(self._latencies)

        if not latencies:
            return 0.0

        index = min(int(len(latencies) * percentile / 100), len(latencies) - 1)

        return latencies[index]

    def get_metrics(self) -> Dict:

        with self._lock:

            snapshot = dict(self._requests)
            polls = {kind: dict(counts) for kind, counts in self._polls.items()}

        successes = snapshot["successful_requests"]

        snapshot["avg_latency"] = (
            snapshot["total_latency"] / successes if successes else 0.0
        )
        snapshot["p50_latency"] = self.get_latency_percentile(50)
        snapshot["p95_latency"] = self.get_latency_percentile(95)
        snapshot["polls"] = polls

        return snapshot
