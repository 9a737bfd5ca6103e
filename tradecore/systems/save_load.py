"""Save and load economy state.

Only the serializable shape is produced here; where and how it is written
to disk is up to the host's save provider.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..simulation.registry import MarketRegistry
    from ..simulation.scheduler import SimulationScheduler

SAVE_VERSION = 1


def serialize_economy(
    registry: "MarketRegistry",
    scheduler: "SimulationScheduler | None" = None,
) -> dict[str, Any]:
    """Serialize every market (and the tick counter) to a plain dictionary."""
    return {
        "version": SAVE_VERSION,
        "tick_count": scheduler.tick_count if scheduler else 0,
        "markets": registry.to_dict(),
    }


def deserialize_economy(
    registry: "MarketRegistry",
    data: dict[str, Any],
    scheduler: "SimulationScheduler | None" = None,
) -> None:
    """Restore markets (and the tick counter) from serialize_economy output."""
    version = data.get("version")
    if version != SAVE_VERSION:
        raise ConfigurationError(f"Unsupported economy save version: {version!r}")

    try:
        registry.load_dict(data["markets"])
    except KeyError as e:
        raise ConfigurationError(f"Economy save is missing {e}") from e

    if scheduler is not None:
        scheduler.tick_count = int(data.get("tick_count", 0))
