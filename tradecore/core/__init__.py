"""Core infrastructure: event bus, clock, registries and ledger."""
from .events import EventBus, Event, SimTick, BigJump
from .clock import SimulationClock, GameTime
from .transactions import Ledger, TradeLedger, Transaction, TransactionType
from .registries import CommodityCatalog, EconomicProfileRegistry, EventCatalog

__all__ = [
    'EventBus', 'Event', 'SimTick', 'BigJump',
    'SimulationClock', 'GameTime',
    'Ledger', 'TradeLedger', 'Transaction', 'TransactionType',
    'CommodityCatalog', 'EconomicProfileRegistry', 'EventCatalog',
]
