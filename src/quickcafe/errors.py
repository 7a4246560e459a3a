"""Exception hierarchy for the recommendation core.

``RecommendationService.recommend`` raises the request-level errors (invalid
request, geocoding failure, not found, timeout), plus ``UpstreamError`` when the
nearby search itself fails. Every other upstream error is raised by a provider
and absorbed per entity by the services.
"""


class QuickCafeError(Exception):
    """Base class for all quickcafe errors."""


class InvalidRequestError(QuickCafeError):
    """A required request field is missing or malformed."""


class GeocodingError(QuickCafeError):
    """The free-text location could not be resolved to coordinates."""


class NotFoundError(QuickCafeError):
    """No candidate cafes exist for the request, or none survive filtering."""


class RecommendationTimeoutError(QuickCafeError):
    """The overall recommendation deadline expired."""


class UpstreamError(QuickCafeError):
    """A provider call failed in a way that should not be retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientUpstreamError(UpstreamError):
    """A provider call failed in a way that may succeed on retry."""


class RateLimitedError(TransientUpstreamError):
    """The provider signalled throttling (HTTP 429 or equivalent)."""


class RetryExhaustedError(UpstreamError):
    """A retryable call kept failing until the attempt or time budget ran out."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
