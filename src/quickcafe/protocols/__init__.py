"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → Memcached, Google → Foursquare, etc.)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .durable_store import DurableStore
from .fast_store import FastStore
from .place_provider import PlaceProvider
from .text_scorer import TextScorer

__all__ = [
    "DurableStore",
    "FastStore",
    "PlaceProvider",
    "TextScorer",
]
