"""tradecore: station market economy simulation."""
from .config import SimulationConfig, load_simulation_config
from .errors import (
    EconomyError, ConfigurationError, NotFound, CommodityNotFound, InvalidCommodity,
    MarketNotFound, CommodityNotStocked, EventNotFound, DuplicateStation, InsufficientResources,
    StaleQuote,
)
from .core import (
    EventBus, SimulationClock, TradeLedger,
    CommodityCatalog, EconomicProfileRegistry, EventCatalog,
)
from .simulation import (
    MarketRegistry, SimulationScheduler, PriceEngine, PriceQuote, StationDescriptor, TradeReceipt,
)

__version__ = "0.1.0"

__all__ = [
    'SimulationConfig', 'load_simulation_config',
    'EconomyError', 'ConfigurationError', 'NotFound', 'CommodityNotFound', 'InvalidCommodity',
    'MarketNotFound', 'CommodityNotStocked', 'EventNotFound', 'DuplicateStation',
    'InsufficientResources', 'StaleQuote',
    'EventBus', 'SimulationClock', 'TradeLedger',
    'CommodityCatalog', 'EconomicProfileRegistry', 'EventCatalog',
    'MarketRegistry', 'SimulationScheduler', 'PriceEngine', 'PriceQuote', 'StationDescriptor',
    'TradeReceipt',
]
