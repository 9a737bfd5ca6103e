"""Support systems (persistence)."""
from .save_load import serialize_economy, deserialize_economy

__all__ = ['serialize_economy', 'deserialize_economy']
