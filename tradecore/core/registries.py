"""Data-driven registries for commodities, profiles and random events.

Load game data from JSON files into immutable lookup objects. Registries are
built once at startup and injected into the engines that need them; adding
new commodities, profiles or events requires only changes to the JSON files.
A malformed file is fatal (ConfigurationError), never skipped per entry.
"""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Iterator, Mapping

from ..config import DATA_DIR
from ..errors import CommodityNotFound, ConfigurationError, EventNotFound
from ..simulation.commodities import (
    Commodity, EconomicProfile, FactionMarketProfile, LegalityTier, RarityTier,
    NEUTRAL_ECONOMIC_PROFILE, neutral_faction_profile,
)
from ..simulation.events import EventEffect, RandomEventDefinition

logger = logging.getLogger(__name__)


def _read_json(path: Path | str) -> dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def _float_map(raw: Any, what: str) -> dict[str, float]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{what} must be a mapping")
    try:
        return {str(k): float(v) for k, v in raw.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{what} has a non-numeric value: {e}") from e


class CommodityCatalog:
    """Immutable lookup of commodity definitions."""

    def __init__(self, commodities: Iterator[Commodity] | list[Commodity]) -> None:
        self._commodities: dict[str, Commodity] = {}
        self._by_category: dict[str, list[str]] = {}

        for commodity in commodities:
            if commodity.id in self._commodities:
                raise ConfigurationError(f"Duplicate commodity id: {commodity.id}")
            self._commodities[commodity.id] = commodity
            self._by_category.setdefault(commodity.category, []).append(commodity.id)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CommodityCatalog:
        """Build a catalog from the `commodities` section of a data file."""
        raw = data.get("commodities")
        if not isinstance(raw, Mapping):
            raise ConfigurationError("Commodity data needs a 'commodities' mapping")

        commodities = []
        for commodity_id, record in raw.items():
            if not isinstance(record, Mapping):
                raise ConfigurationError(f"Commodity {commodity_id} must be a mapping")
            try:
                base_price = float(record["base_price"])
                category = str(record["category"])
                rarity = RarityTier(record.get("rarity", RarityTier.COMMON.value))
                legality = LegalityTier(record.get("legality", LegalityTier.LEGAL.value))
            except KeyError as e:
                raise ConfigurationError(f"Commodity {commodity_id} is missing {e}") from e
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Commodity {commodity_id} is invalid: {e}") from e

            if base_price <= 0:
                raise ConfigurationError(f"Commodity {commodity_id} needs a positive base_price")

            commodities.append(Commodity(
                id=commodity_id,
                category=category,
                base_price=base_price,
                rarity=rarity,
                legality=legality,
                name=record.get("name", ""),
                tags=frozenset(record.get("tags", [])),
            ))

        return cls(commodities)

    @classmethod
    def load(cls, path: Path | str | None = None) -> CommodityCatalog:
        """Load the catalog from JSON. Defaults to the shipped data file."""
        return cls.from_dict(_read_json(path or DATA_DIR / "commodities.json"))

    def get(self, commodity_id: str) -> Commodity:
        """Get a commodity by id. Raises CommodityNotFound if absent."""
        try:
            return self._commodities[commodity_id]
        except KeyError:
            raise CommodityNotFound(commodity_id) from None

    def exists(self, commodity_id: str) -> bool:
        return commodity_id in self._commodities

    def get_by_category(self, category: str) -> list[str]:
        """Get all commodity ids in a category."""
        return self._by_category.get(category, []).copy()

    def all_ids(self) -> list[str]:
        return list(self._commodities)

    def __iter__(self) -> Iterator[Commodity]:
        return iter(self._commodities.values())

    def __len__(self) -> int:
        return len(self._commodities)

    def __contains__(self, commodity_id: object) -> bool:
        return commodity_id in self._commodities


class EconomicProfileRegistry:
    """Immutable lookup of station economic profiles and faction market profiles.

    Lookups never fail: a missing id degrades to the neutral default and a
    warning is logged (once per id), since absent profiles must not block
    pricing.
    """

    def __init__(
        self,
        econ_profiles: list[EconomicProfile] | None = None,
        faction_profiles: list[FactionMarketProfile] | None = None,
    ) -> None:
        self._econ: dict[str, EconomicProfile] = {p.id: p for p in econ_profiles or []}
        self._factions: dict[str, FactionMarketProfile] = {
            p.faction_id: p for p in faction_profiles or []
        }
        self._warned: set[tuple[str, str]] = set()

    @classmethod
    def from_dict(
        cls,
        econ_data: Mapping[str, Any],
        faction_data: Mapping[str, Any],
    ) -> EconomicProfileRegistry:
        """Build from the `profiles` and `factions` sections of the data files."""
        raw_profiles = econ_data.get("profiles")
        raw_factions = faction_data.get("factions")
        if not isinstance(raw_profiles, Mapping):
            raise ConfigurationError("Economic profile data needs a 'profiles' mapping")
        if not isinstance(raw_factions, Mapping):
            raise ConfigurationError("Faction profile data needs a 'factions' mapping")

        econ_profiles = []
        for profile_id, record in raw_profiles.items():
            if not isinstance(record, Mapping):
                raise ConfigurationError(f"Economic profile {profile_id} must be a mapping")
            econ_profiles.append(EconomicProfile(
                id=profile_id,
                category_modifiers=_float_map(
                    record.get("category_modifiers"), f"{profile_id}.category_modifiers"),
                production=_float_map(record.get("production"), f"{profile_id}.production"),
                consumption=_float_map(record.get("consumption"), f"{profile_id}.consumption"),
            ))

        faction_profiles = []
        for faction_id, record in raw_factions.items():
            if not isinstance(record, Mapping):
                raise ConfigurationError(f"Faction profile {faction_id} must be a mapping")
            try:
                profile = FactionMarketProfile(
                    faction_id=faction_id,
                    buy_price_factor=float(record.get("buy_price_factor", 1.0)),
                    sell_price_factor=float(record.get("sell_price_factor", 1.0)),
                    tax_rate=float(record.get("tax_rate", 0.0)),
                    illegal_tolerance=float(record.get("illegal_tolerance", 0.0)),
                    supply_bias=float(record.get("supply_bias", 1.0)),
                    demand_bias=float(record.get("demand_bias", 1.0)),
                    services=frozenset(record.get("services", [])),
                )
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Faction profile {faction_id} is invalid: {e}") from e

            if not 0.0 <= profile.illegal_tolerance <= 1.0:
                raise ConfigurationError(f"{faction_id}.illegal_tolerance must be within [0, 1]")
            if profile.buy_price_factor <= 0 or profile.sell_price_factor <= 0:
                raise ConfigurationError(f"{faction_id} price factors must be positive")
            if profile.tax_rate < 0:
                raise ConfigurationError(f"{faction_id}.tax_rate cannot be negative")
            faction_profiles.append(profile)

        return cls(econ_profiles, faction_profiles)

    @classmethod
    def load(
        cls,
        econ_path: Path | str | None = None,
        faction_path: Path | str | None = None,
    ) -> EconomicProfileRegistry:
        """Load both profile files. Defaults to the shipped data files."""
        return cls.from_dict(
            _read_json(econ_path or DATA_DIR / "economic_profiles.json"),
            _read_json(faction_path or DATA_DIR / "faction_profiles.json"),
        )

    def get_econ_profile(self, profile_id: str) -> EconomicProfile:
        """Get an economic profile, or the neutral profile if unknown."""
        profile = self._econ.get(profile_id)
        if profile is None:
            self._warn_missing("economic profile", profile_id)
            return NEUTRAL_ECONOMIC_PROFILE
        return profile

    def get_faction_profile(self, faction_id: str) -> FactionMarketProfile:
        """Get a faction market profile, or a neutral profile if unknown."""
        profile = self._factions.get(faction_id)
        if profile is None:
            self._warn_missing("faction profile", faction_id)
            return neutral_faction_profile(faction_id)
        return profile

    def has_econ_profile(self, profile_id: str) -> bool:
        return profile_id in self._econ

    def has_faction_profile(self, faction_id: str) -> bool:
        return faction_id in self._factions

    def _warn_missing(self, kind: str, key: str) -> None:
        if (kind, key) in self._warned:
            return
        self._warned.add((kind, key))
        logger.warning("Missing %s %r, using neutral defaults", kind, key)


class EventCatalog:
    """Ordered, immutable collection of random event definitions."""

    def __init__(self, definitions: list[RandomEventDefinition] | None = None) -> None:
        self._definitions: dict[str, RandomEventDefinition] = {}
        for definition in definitions or []:
            if definition.id in self._definitions:
                raise ConfigurationError(f"Duplicate random event id: {definition.id}")
            self._definitions[definition.id] = definition

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EventCatalog:
        """Build from the `events` list of a data file."""
        raw = data.get("events")
        if not isinstance(raw, list):
            raise ConfigurationError("Random event data needs an 'events' list")

        definitions = []
        for record in raw:
            if not isinstance(record, Mapping) or "id" not in record:
                raise ConfigurationError(f"Random event record needs an id: {record!r}")
            event_id = str(record["id"])
            try:
                effects = tuple(
                    EventEffect(
                        commodity_id=effect.get("commodity_id"),
                        category=effect.get("category"),
                        supply_delta=float(effect.get("supply_delta", 0.0)),
                        demand_delta=float(effect.get("demand_delta", 0.0)),
                    )
                    for effect in record.get("effects", [])
                )
                definition = RandomEventDefinition(
                    id=event_id,
                    weight=float(record.get("weight", 1.0)),
                    applicable_profiles=frozenset(record.get("applicable_profiles", [])),
                    effects=effects,
                    title=record.get("title", ""),
                    description=record.get("description", ""),
                )
            except (AttributeError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Random event {event_id} is invalid: {e}") from e
            definitions.append(definition)

        return cls(definitions)

    @classmethod
    def load(cls, path: Path | str | None = None) -> EventCatalog:
        """Load event definitions from JSON. Defaults to the shipped data file."""
        return cls.from_dict(_read_json(path or DATA_DIR / "random_events.json"))

    def get(self, event_id: str) -> RandomEventDefinition:
        """Get a definition by id. Raises EventNotFound if absent."""
        try:
            return self._definitions[event_id]
        except KeyError:
            raise EventNotFound(event_id) from None

    def applicable_to(self, profile_id: str) -> list[RandomEventDefinition]:
        """Definitions that may fire for a profile, in definition order."""
        return [d for d in self._definitions.values() if d.applies_to(profile_id)]

    def __iter__(self) -> Iterator[RandomEventDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)
