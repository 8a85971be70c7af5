"""Configuration classes for netload components."""

import os
from dataclasses import dataclass


def _env_parallelism() -> int:
    raw = os.getenv("NETLOAD_PARALLELISM")
    if not raw:
        return 1
    try:
        return max(1, int(raw))
    except ValueError:
        raise ValueError(
            f"NETLOAD_PARALLELISM must be an integer, got {raw!r}"
        ) from None


@dataclass
class SweepConfig:
    """Configuration for the single-link failure sweep."""

    # Default number of worker processes; None reads NETLOAD_PARALLELISM
    # when a sweep starts, and 1 runs the sweep in-process
    parallelism: int | None = None

    # Below this many links per worker, process start-up outweighs the work
    min_links_per_worker: int = 8

    @property
    def effective_parallelism(self) -> int:
        """Return the configured parallelism, falling back to the environment.

        Raises:
            ValueError: If ``NETLOAD_PARALLELISM`` is set but not an integer.
        """
        if self.parallelism is not None:
            return self.parallelism
        return _env_parallelism()

    def estimate_workers(self, link_count: int, parallelism: int | None = None) -> int:
        """Return the number of workers to use for a sweep over ``link_count`` links."""
        requested = self.effective_parallelism if parallelism is None else parallelism
        if requested <= 1 or link_count == 0:
            return 1
        by_size = max(1, link_count // self.min_links_per_worker)
        return max(1, min(requested, by_size, link_count))


# Global configuration instance
SWEEP_CONFIG = SweepConfig()
