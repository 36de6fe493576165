from __future__ import annotations


class InkwellError(Exception):
    """Base error for the writing assistant."""


class ConfigurationError(InkwellError):
    """A required API key, model id or setting is missing or unusable."""


class ProviderError(InkwellError):
    """Transport failure or non-2xx response from a provider."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status = status
        self.body = body


class AuthenticationError(ProviderError):
    pass


class RateLimitError(ProviderError):
    def __init__(
        self,
        message: str = "Rate limited",
        *,
        retry_after_seconds: int | None = None,
        provider: str | None = None,
        status: int | None = 429,
        body: str | None = None,
    ):
        super().__init__(message, provider=provider, status=status, body=body)
        self.retry_after_seconds = retry_after_seconds


class ResponseShapeError(ProviderError):
    """Provider answered, but the body lacks the fields we read."""


class ResourceNotFoundError(InkwellError):
    def __init__(self, reference: str, message: str | None = None):
        super().__init__(message or f"Resource not found: {reference}")
        self.reference = reference
