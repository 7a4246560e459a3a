"""Repository layer for data access.

This layer puts external dependencies (Redis, the SQL database, Google Maps,
the scoring LLM) behind protocol-based interfaces, so that:
- implementations can be swapped (SQLite -> PostgreSQL, OpenAI -> Groq)
- unit tests can use fake implementations
- concerns stay separated

The repositories rely on structural typing rather than inheritance.
Any class implementing the required methods satisfies the protocol.
"""

from quickcafe.protocols import DurableStore, FastStore, PlaceProvider, TextScorer

from .google_places_provider import GooglePlacesProvider
from .openai_text_scorer import OpenAITextScorer
from .redis_repository import RedisFastStore
from .sql_repository import SqlDurableStore

__all__ = [
    "DurableStore",
    "FastStore",
    "GooglePlacesProvider",
    "OpenAITextScorer",
    "PlaceProvider",
    "RedisFastStore",
    "SqlDurableStore",
    "TextScorer",
]
