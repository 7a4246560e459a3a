"""OpenAI chat-completions implementation of TextScorer.

Works against any OpenAI-compatible endpoint (OpenAI, Groq, a local vLLM or
Ollama server) by pointing OPENAI_BASE_URL at it. Returns the raw message
content; validation happens in the analysis orchestrator.
"""

import httpx

from quickcafe.config import settings
from quickcafe.entities import ScoringRequest
from quickcafe.errors import RateLimitedError, TransientUpstreamError, UpstreamError
from quickcafe.services.prompts import build_messages


class OpenAITextScorer:
    """OpenAI implementation of the TextScorer protocol.

    This class satisfies the TextScorer protocol through structural
    typing - no explicit inheritance needed.

    Retries are not handled here: callers wrap ``score`` in a RetryPolicy.
    """

    TEMPERATURE = 0
    MAX_TOKENS = 300

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            api_key: Bearer token. Defaults to settings.openai_api_key.
            base_url: API root. Defaults to settings.openai_base_url.
            model: Chat model. Defaults to settings.scoring_model.
            timeout: Request timeout in seconds. Defaults to settings.request_timeout.
            client: Preconfigured httpx client, mainly for tests.
        """
        self._api_key = api_key or settings.openai_api_key
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._model = model or settings.scoring_model
        self._timeout = timeout or settings.request_timeout
        self._client = client

    @classmethod
    def create(cls, model: str | None = None) -> "OpenAITextScorer":
        """Factory method to create OpenAITextScorer with settings defaults."""
        return cls(model=model)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=headers)
        return self._client

    @property
    def model_name(self) -> str:
        return self._model

    async def score(self, request: ScoringRequest) -> str:
        """Ask the model to score one cafe.

        Args:
            request: The cafe context to score

        Returns:
            The raw message content (expected to be a JSON object)

        Raises:
            RateLimitedError: On HTTP 429
            TransientUpstreamError: On network failure or timeout
            UpstreamError: On any other error status or a response without content
        """
        payload = {
            "model": self._model,
            "messages": build_messages(request),
            "temperature": self.TEMPERATURE,
            "max_tokens": self.MAX_TOKENS,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await self.client.post(f"{self._base_url}/chat/completions", json=payload)
        except httpx.RequestError as exc:
            raise TransientUpstreamError(f"Scoring request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError("Scoring rate limit exceeded", status_code=429)
        if response.is_error:
            raise UpstreamError(
                f"Scoring API error: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamError("Scoring response has no message content") from exc

        if not isinstance(content, str) or not content:
            raise UpstreamError("Scoring response has no message content")
        return content

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
