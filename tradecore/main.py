"""Headless entry point: run the economy for a while and print market prices."""
from __future__ import annotations
import argparse
import logging
import sys

from .config import load_simulation_config
from .core.clock import SimulationClock
from .core.events import EventBus, MarketEventApplied
from .core.registries import CommodityCatalog, EconomicProfileRegistry, EventCatalog
from .simulation.market import StationDescriptor
from .simulation.registry import MarketRegistry

# Demo stations standing in for the galaxy generator
DEMO_STATIONS: tuple[StationDescriptor, ...] = (
    StationDescriptor(
        "station:alpha", "terran_union", "agricultural",
        ("grain", "protein_packs", "fresh_fruit", "hydrogen_fuel", "machine_parts", "microchips"),
    ),
    StationDescriptor(
        "station:kessler", "mining_guild", "mining",
        ("ore_iron", "ore_titanium", "ore_palladium", "grain", "hydrogen_fuel", "steel_beams"),
    ),
    StationDescriptor(
        "station:forge", "terran_union", "industrial",
        ("ore_iron", "ore_titanium", "steel_beams", "machine_parts", "microchips",
         "weapon_components", "protein_packs"),
    ),
    StationDescriptor(
        "station:bazaar", "free_traders", "trade_hub",
        ("grain", "fresh_fruit", "synthetic_wine", "microchips", "antimatter_cells", "stimulants"),
    ),
    StationDescriptor(
        "station:driftwood", "outer_rim_syndicate", "frontier",
        ("ore_iron", "protein_packs", "hydrogen_fuel", "weapon_components", "stimulants"),
    ),
)


def create_initial_economy(seed: int) -> MarketRegistry:
    """Load shipped data and register the demo station markets."""
    config = load_simulation_config()
    registry = MarketRegistry(
        catalog=CommodityCatalog.load(),
        profiles=EconomicProfileRegistry.load(),
        events=EventCatalog.load(),
        config=config,
        event_bus=EventBus(),
        seed=seed,
    )
    for descriptor in DEMO_STATIONS:
        registry.create_market_location(descriptor, seed=seed)
    return registry


def print_market(registry: MarketRegistry, station_id: str) -> None:
    snapshot = registry.get_market_snapshot(station_id)
    print(f"\n{station_id} ({snapshot['faction_id']}, {snapshot['econ_profile_id']})")
    print(f"  {'commodity':<20}{'supply':>10}{'demand':>10}{'price':>12}{'buy x10':>12}")
    for entry in snapshot["entries"]:
        quote = registry.calculate_price(entry["commodity_id"], station_id, is_buy=True, quantity=10)
        print(f"  {entry['commodity_id']:<20}{entry['supply_level']:>10.1f}"
              f"{entry['demand_level']:>10.1f}{entry['current_price']:>12.2f}"
              f"{quote.unit_price:>12.2f}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the station market economy headless.")
    parser.add_argument("--hours", type=float, default=24.0,
                        help="game hours to simulate in regular steps")
    parser.add_argument("--jump-hours", type=float, default=0.0,
                        help="additional time skip (a big jump past the threshold)")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--station", help="only print this station")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = create_initial_economy(args.seed)
    scheduler = registry.create_scheduler(seed=args.seed)
    scheduler.attach(registry.event_bus)
    registry.event_bus.subscribe(
        MarketEventApplied,
        lambda e: print(f"[event] {e.title or e.event_id} at {e.station_id}"),
    )

    clock = SimulationClock(
        registry.event_bus,
        tick_interval_hours=registry.config.tick_interval_hours,
        big_jump_threshold_hours=registry.config.big_jump_threshold_hours,
    )
    # Advance in one-hour steps so regular ticks, not a jump, drive --hours
    hours = args.hours
    while hours > 0:
        step = min(1.0, hours)
        clock.advance(step)
        hours -= step
    if args.jump_hours > 0:
        clock.advance(args.jump_hours)

    print(f"{clock.game_time} - tick {scheduler.tick_count}")
    stations = [args.station] if args.station else [d.station_id for d in DEMO_STATIONS]
    for station_id in stations:
        print_market(registry, station_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
