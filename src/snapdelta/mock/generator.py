"""
Simulated request traffic.

Feeds fake but plausible web-service stats into a StatsCollection so the
CLI and dashboard can be exercised without wiring up a real app. Load
follows a slow sine wave with occasional random spikes.
"""

import math
import random

from snapdelta.provider.memory import StatsCollection


class TrafficSimulator:

    def __init__(self, collection: StatsCollection, seed: int = 42):
        self._collection = collection
        self._rng = random.Random(seed)
        self._tick = 0
        self.service = "checkout-api"
        self.region = "eu-west-1"
        collection.set_label("service", self.service)
        collection.set_label("region", self.region)

    @property
    def ticks(self) -> int:
        return self._tick

    def tick(self):
        """Simulate one interval of traffic."""
        self._tick += 1
        t = self._tick

        base_load = 40 + 25 * math.sin(t * 0.05)
        spike = self._rng.random() * 60 if self._rng.random() > 0.9 else 0
        requests = max(1, int(base_load + spike))

        # Error rate climbs when the service is busy
        error_rate = 0.01 + max(0.0, (requests - 60) / 400)
        errors = sum(1 for _ in range(requests) if self._rng.random() < error_rate)

        # Latency degrades with load, long tail from a log-normal
        center = 40 + requests * 0.8
        for _ in range(requests):
            latency = center * self._rng.lognormvariate(0, 0.45)
            self._collection.add_metric("latency_ms", latency)

        self._collection.incr("requests", requests)
        if errors:
            self._collection.incr("errors", errors)
        self._collection.incr("bytes_out", int(requests * self._rng.uniform(1800, 2600)))
        self._collection.set_gauge("in_flight", float(max(0, int(requests / 8 + self._rng.gauss(0, 2)))))
