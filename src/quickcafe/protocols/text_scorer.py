"""Text scoring protocol.

Defines the interface for any service that turns review snippets into a JSON
document with ``vibe_scores`` and ``amenity_scores`` maps.

Implementations can include:
- OpenAI chat completions (default)
- Any OpenAI-compatible endpoint (Groq, Ollama, vLLM)
"""

from typing import Protocol, runtime_checkable

from quickcafe.entities import ScoringRequest


@runtime_checkable
class TextScorer(Protocol):
    """Protocol for review scoring services."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the scoring model."""
        ...

    async def score(self, request: ScoringRequest) -> str:
        """Score one cafe.

        Args:
            request: The cafe context to score

        Returns:
            The raw JSON text produced by the model, unvalidated

        Raises:
            RateLimitedError: If the provider throttled the call (retryable)
            TransientUpstreamError: On network failure (retryable)
            UpstreamError: On any other non-success status
        """
        ...
