"""
Provider backed by simulated traffic.
Used for local development and demos.
"""

from snapdelta.distribution import DEFAULT_BOUNDS
from snapdelta.mock.generator import TrafficSimulator
from snapdelta.provider.memory import StatsCollection


class MockProvider(StatsCollection):
    """A StatsCollection that fills itself with fake traffic on tick()."""

    def __init__(self, seed: int = 42):
        super().__init__(bounds=DEFAULT_BOUNDS)
        self._sim = TrafficSimulator(self, seed=seed)

    def tick(self):
        self._sim.tick()

    def name(self) -> str:
        return f"Simulated traffic ({self._sim.service}, seed-driven)"
