"""App Store Connect tool catalog."""

from ..client import AppStoreConnectClient
from ..registry import ToolRegistry
from . import apps, builds, reviews, testflight

CATEGORIES = {
    "App Management": apps,
    "Builds": builds,
    "TestFlight": testflight,
    "Customer Reviews": reviews,
}


def build_registry(client: AppStoreConnectClient | None) -> ToolRegistry:
    """Create a registry holding every tool in the catalog."""
    registry = ToolRegistry(client)
    for module in CATEGORIES.values():
        module.register(registry)
    return registry


__all__ = ["CATEGORIES", "build_registry"]
