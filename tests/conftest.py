"""Shared fixtures: a small in-code catalog so tests never depend on shipped data."""
import pytest

from tradecore.config import SimulationConfig
from tradecore.core.events import EventBus
from tradecore.core.registries import CommodityCatalog, EconomicProfileRegistry, EventCatalog
from tradecore.core.transactions import TradeLedger
from tradecore.simulation.market import StationDescriptor
from tradecore.simulation.registry import MarketRegistry


CATALOG_DATA = {
    "commodities": {
        "ore_iron": {"category": "ore", "base_price": 10, "rarity": "common", "legality": "legal"},
        "ore_gold": {"category": "ore", "base_price": 50, "rarity": "rare", "legality": "legal"},
        "grain": {"category": "food", "base_price": 5, "rarity": "common", "legality": "legal"},
        "fresh_fruit": {"category": "food", "base_price": 20, "rarity": "uncommon", "legality": "legal"},
        "weapon_parts": {"category": "tech", "base_price": 100, "rarity": "uncommon",
                         "legality": "restricted"},
        "stimulants": {"category": "contraband", "base_price": 90, "rarity": "rare",
                       "legality": "illegal"},
    }
}

ECON_DATA = {
    "profiles": {
        "mining": {
            "category_modifiers": {"ore": 1.2},
            "production": {"ore": 2.0},
            "consumption": {"food": 1.0},
        },
        "agricultural": {
            "category_modifiers": {"food": 0.8},
            "production": {"food": 3.0},
        },
    }
}

FACTION_DATA = {
    "factions": {
        "union": {
            "buy_price_factor": 1.1, "sell_price_factor": 0.9, "tax_rate": 0.05,
            "illegal_tolerance": 0.0, "services": ["commodities"],
        },
        "syndicate": {
            "buy_price_factor": 1.2, "sell_price_factor": 0.8, "tax_rate": 0.1,
            "illegal_tolerance": 1.0,
        },
    }
}

EVENT_DATA = {
    "events": [
        {
            "id": "bountiful_harvest",
            "title": "Bountiful Harvest",
            "weight": 3,
            "applicable_profiles": ["agricultural"],
            "effects": [
                {"category": "food", "supply_delta": 100},
                {"commodity_id": "fresh_fruit", "demand_delta": -10},
            ],
        },
        {
            "id": "rich_vein",
            "weight": 1,
            "applicable_profiles": ["mining"],
            "effects": [{"commodity_id": "ore_iron", "supply_delta": 200}],
        },
        {
            "id": "phantom_cargo",
            "weight": 1,
            "applicable_profiles": ["nowhere"],
            "effects": [
                {"commodity_id": "stimulants", "supply_delta": 50},
                {"commodity_id": "ore_iron", "demand_delta": 5},
            ],
        },
    ]
}

ALPHA = StationDescriptor(
    station_id="station:alpha",
    faction_id="union",
    econ_profile_id="mining",
    stock=("ore_iron", "grain", "fresh_fruit"),
)

BETA = StationDescriptor(
    station_id="station:beta",
    faction_id="syndicate",
    econ_profile_id="agricultural",
    stock=("grain", "fresh_fruit", "weapon_parts", "stimulants"),
)


@pytest.fixture
def catalog():
    return CommodityCatalog.from_dict(CATALOG_DATA)


@pytest.fixture
def profiles():
    return EconomicProfileRegistry.from_dict(ECON_DATA, FACTION_DATA)


@pytest.fixture
def event_catalog():
    return EventCatalog.from_dict(EVENT_DATA)


@pytest.fixture
def config():
    """Deterministic config: no variance, no jitter, no random events."""
    return SimulationConfig(
        variance_band=(1.0, 1.0),
        initial_jitter=0.0,
        event_chance_per_tick=0.0,
    )


@pytest.fixture
def ledger():
    ledger = TradeLedger()
    ledger.open_account("trader", credits=1000.0, cargo_capacity=50)
    return ledger


@pytest.fixture
def registry(catalog, profiles, event_catalog, config, ledger):
    registry = MarketRegistry(
        catalog=catalog,
        profiles=profiles,
        events=event_catalog,
        config=config,
        ledger=ledger,
        event_bus=EventBus(),
        seed=7,
    )
    registry.create_market_location(ALPHA, seed=1)
    registry.create_market_location(BETA, seed=1)
    return registry


@pytest.fixture
def scheduler(registry):
    return registry.create_scheduler(seed=11)
