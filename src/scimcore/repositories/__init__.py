from .base import ResourceRepository, normalize_natural_key
from .memory import InMemoryRepository
from .orm import TortoiseRepository

__all__ = [
    "ResourceRepository",
    "normalize_natural_key",
    "InMemoryRepository",
    "TortoiseRepository",
]
