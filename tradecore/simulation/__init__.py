"""Economic simulation: markets, pricing, events and scheduling."""
from .commodities import Commodity, EconomicProfile, FactionMarketProfile, LegalityTier, RarityTier
from .market import MarketEntry, MarketLocation, StationDescriptor
from .pricing import PriceEngine, PriceQuote
from .events import EventEngine, EventEffect, RandomEventDefinition
from .scheduler import SimulationScheduler
from .registry import MarketRegistry, TradeReceipt

__all__ = [
    'Commodity', 'EconomicProfile', 'FactionMarketProfile', 'LegalityTier', 'RarityTier',
    'MarketEntry', 'MarketLocation', 'StationDescriptor',
    'PriceEngine', 'PriceQuote',
    'EventEngine', 'EventEffect', 'RandomEventDefinition',
    'SimulationScheduler',
    'MarketRegistry', 'TradeReceipt',
]
