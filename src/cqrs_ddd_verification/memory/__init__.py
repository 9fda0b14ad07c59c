"""In-memory stores for tests and single-process deployments."""

from .challenges import InMemoryChallengeStore
from .devices import InMemoryTrustedDeviceStore

__all__: list[str] = ["InMemoryChallengeStore", "InMemoryTrustedDeviceStore"]
