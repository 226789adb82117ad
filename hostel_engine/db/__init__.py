"""
Database access: engine/session ownership, transactions and schema probing.
"""

from hostel_engine.db.capabilities import SchemaCapabilities, SchemaCapabilityCache, SchemaProbe
from hostel_engine.db.session import Database
from hostel_engine.db.transaction_manager import TransactionContext, TransactionManager

__all__ = [
    "Database",
    "TransactionContext",
    "TransactionManager",
    "SchemaProbe",
    "SchemaCapabilities",
    "SchemaCapabilityCache",
]
