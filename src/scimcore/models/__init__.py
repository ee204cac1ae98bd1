from .resource import ResourceRecord

__all__ = [
    "ResourceRecord",
]
