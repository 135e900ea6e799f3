from .ledger import LedgerRepository
from .memory import MemoryRepository
from .operational import OperationalRepository

__all__ = ["LedgerRepository", "MemoryRepository", "OperationalRepository"]
