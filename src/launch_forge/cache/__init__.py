"""Storage for build records."""

from launch_forge.cache.base import BuildStore, InMemoryBuildStore

__all__ = [
    "BuildStore",
    "InMemoryBuildStore",
]
