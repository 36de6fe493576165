from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from .errors import AuthenticationError, ProviderError, RateLimitError, ResponseShapeError
from .metrics import provider_request_latency_seconds, provider_requests_total

log = structlog.get_logger()

_MAX_ERROR_BODY_CHARS = 2000


def normalize_base_url(base_url: str) -> str:
    return base_url if base_url.endswith("/") else base_url + "/"


def _error_detail(resp: httpx.Response) -> str | None:
    """Pull `error.message` out of an OpenAI- or Anthropic-style error body."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict) and isinstance(err.get("message"), str):
        return err["message"]
    if isinstance(err, str):
        return err
    return None


class ProviderSession:
    """
    One provider endpoint: base URL, fixed auth headers and an httpx client.

    Every call is a single request/response exchange. Nothing is retried and
    nothing is cached between calls.
    """

    def __init__(
        self,
        *,
        provider: str,
        base_url: str,
        headers: Mapping[str, str],
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60,
    ):
        self.provider = provider
        self.base_url = normalize_base_url(base_url)
        self._headers = {"Content-Type": "application/json", **headers}
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self) -> None:
        await self._client.aclose()

    def url(self, endpoint: str) -> str:
        return self.base_url + endpoint.lstrip("/")

    def _raise_for_status(self, resp: httpx.Response) -> None:
        status = resp.status_code
        if 200 <= status <= 299:
            return
        body = resp.text[:_MAX_ERROR_BODY_CHARS]
        detail = _error_detail(resp)
        message = f"{self.provider} returned HTTP {status}"
        if detail:
            message = f"{message}: {detail}"

        if status in (401, 403):
            raise AuthenticationError(message, provider=self.provider, status=status, body=body)
        if status == 429:
            retry_after = resp.headers.get("retry-after")
            raise RateLimitError(
                message,
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                provider=self.provider,
                status=status,
                body=body,
            )
        raise ProviderError(message, provider=self.provider, status=status, body=body)

    async def request_json(self, method: str, endpoint: str, payload: Any = None) -> Any:
        url = self.url(endpoint)
        started = time.monotonic()
        status_label = "transport_error"
        try:
            try:
                resp = await self._client.request(
                    method,
                    url,
                    headers=self._headers,
                    json=payload,
                )
            except httpx.TimeoutException as e:
                raise ProviderError(f"{self.provider} request timed out.", provider=self.provider) from e
            except httpx.HTTPError as e:
                raise ProviderError(f"{self.provider} request failed: {e}", provider=self.provider) from e

            status_label = str(resp.status_code)
            self._raise_for_status(resp)

            try:
                data = resp.json()
            except ValueError as e:
                raise ResponseShapeError(
                    f"{self.provider} returned a non-JSON body.",
                    provider=self.provider,
                    status=resp.status_code,
                    body=resp.text[:_MAX_ERROR_BODY_CHARS],
                ) from e
        except ProviderError as e:
            log.warning(
                "provider_request_failed",
                provider=self.provider,
                endpoint=endpoint,
                status=e.status,
                error=str(e),
            )
            raise
        finally:
            provider_requests_total.labels(provider=self.provider, endpoint=endpoint, status=status_label).inc()
            provider_request_latency_seconds.labels(provider=self.provider, endpoint=endpoint).observe(
                max(0.0, time.monotonic() - started)
            )

        log.debug("provider_request_ok", provider=self.provider, endpoint=endpoint, status=resp.status_code)
        return data
