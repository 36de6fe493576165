from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any, TypeAlias, cast

import structlog


_SENSITIVE_KEYS = {
    "authorization",
    "x-api-key",
    "api_key",
    "apikey",
    "openaiapikey",
    "anthropicapikey",
    "veniceapikey",
    "token",
    "secret",
    "fernet_key",
}

_SENSITIVE_FRAGMENTS = ("api_key", "apikey", "token", "secret", "password")

_BEARER_RE = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._-]{6,})")
# OpenAI / Anthropic style keys that may leak through upstream error bodies.
_PROVIDER_KEY_RE = re.compile(r"\bsk-(?:ant-)?[A-Za-z0-9_-]{8,}")

ProcessorReturn: TypeAlias = Mapping[str, Any] | str | bytes | bytearray | tuple[Any, ...]
Processor: TypeAlias = Callable[[Any, str, MutableMapping[str, Any]], ProcessorReturn]


def _is_sensitive_key(key: Any) -> bool:
    name = str(key).lower()
    return name in _SENSITIVE_KEYS or any(f in name for f in _SENSITIVE_FRAGMENTS)


def redact(value: Any, *, secrets: list[str]) -> Any:
    if isinstance(value, str):
        out = value
        for secret in secrets:
            if secret and secret in out:
                out = out.replace(secret, "[REDACTED]")
        out = _BEARER_RE.sub("Bearer [REDACTED]", out)
        return _PROVIDER_KEY_RE.sub("[REDACTED]", out)
    if isinstance(value, list):
        return [redact(v, secrets=secrets) for v in value]
    if isinstance(value, tuple):
        return tuple(redact(v, secrets=secrets) for v in value)
    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if _is_sensitive_key(k) else redact(v, secrets=secrets)
            for k, v in value.items()
        }
    return value


def _make_redaction_processor(*, secrets: list[str]) -> Processor:
    secrets_norm = [s for s in secrets if isinstance(s, str) and s]

    def _processor(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> ProcessorReturn:
        return cast(dict[str, Any], redact(dict(event_dict), secrets=secrets_norm))

    return _processor


def configure_logging(level: str = "INFO", fmt: str = "console", *, secrets: list[str] | None = None) -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level)

    processors: list[Processor] = [
        cast(Processor, structlog.contextvars.merge_contextvars),
        cast(Processor, structlog.processors.add_log_level),
        cast(Processor, structlog.processors.TimeStamper(fmt="iso")),
        # Runs without configured secrets too; bearer and sk- patterns still apply.
        _make_redaction_processor(secrets=secrets or []),
    ]

    if fmt == "json":
        processors.append(cast(Processor, structlog.processors.format_exc_info))
        processors.append(cast(Processor, structlog.processors.JSONRenderer()))
    else:
        processors.append(cast(Processor, structlog.dev.ConsoleRenderer()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
