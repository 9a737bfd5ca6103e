"""Exceptions raised by the economy core."""
from __future__ import annotations


class EconomyError(Exception):
    """Base exception for the economy core."""
    pass


class ConfigurationError(EconomyError):
    """Raised when startup data (catalog, profiles, config) is malformed.

    Always fatal: no market can be priced without valid configuration.
    """
    pass


class NotFound(EconomyError, LookupError):
    """Raised when a referenced id does not resolve."""
    pass


class CommodityNotFound(NotFound):
    """Raised when a commodity id is not in the catalog."""

    def __init__(self, commodity_id: str) -> None:
        super().__init__(f"Unknown commodity: {commodity_id}")
        self.commodity_id = commodity_id


class InvalidCommodity(CommodityNotFound):
    """Raised when a market entry is requested for a non-catalog commodity."""
    pass


class EventNotFound(NotFound):
    """Raised when a random event id is not defined."""

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Unknown random event: {event_id}")
        self.event_id = event_id


class MarketNotFound(NotFound):
    """Raised when no market is registered for a station."""

    def __init__(self, station_id: str) -> None:
        super().__init__(f"No market at station: {station_id}")
        self.station_id = station_id


class CommodityNotStocked(NotFound):
    """Raised when a market does not trade the requested commodity."""

    def __init__(self, station_id: str, commodity_id: str) -> None:
        super().__init__(f"{station_id} does not stock {commodity_id}")
        self.station_id = station_id
        self.commodity_id = commodity_id


class DuplicateStation(EconomyError):
    """Raised when a station id already has a market."""

    def __init__(self, station_id: str) -> None:
        super().__init__(f"Market already registered for station: {station_id}")
        self.station_id = station_id


class InsufficientResources(EconomyError):
    """Raised when a trade fails for lack of funds, cargo or hold space."""
    pass


class StaleQuote(EconomyError):
    """Raised when a quote no longer matches the market it was issued against."""

    def __init__(self, station_id: str, commodity_id: str, reason: str) -> None:
        super().__init__(f"Quote for {commodity_id} at {station_id} is stale: {reason}")
        self.station_id = station_id
        self.commodity_id = commodity_id
