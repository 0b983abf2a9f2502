"""Enums module for Cosmic Daily.

Contains all enumeration classes used throughout the package.
"""

from enum import StrEnum


class MediaType(StrEnum):
    """Media kinds reported by the APOD feed."""
    Image = "image"
    Video = "video"
    Other = "other"


class FetchState(StrEnum):
    """Lifecycle states of the fetch orchestrator."""
    Idle = "idle"
    ServingCache = "serving_cache"
    Refreshing = "refreshing"
    Failed = "failed"


class FetchSource(StrEnum):
    """Where a surfaced record came from."""
    Cache = "cache"
    Network = "network"
