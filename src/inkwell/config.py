from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

OPENAI_API_BASE = "https://api.openai.com/v1"
VENICE_API_BASE = "https://api.venice.ai/api/v1"
ANTHROPIC_API_BASE = "https://api.anthropic.com/v1"

# Options the editor host persists, keyed by their stored (camelCase) names.
PERSISTED_FIELDS = (
    "openai_api_key",
    "anthropic_api_key",
    "venice_api_key",
    "summarization_model",
    "creative_model",
    "writing_style_file",
)


class InkwellConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Provider credentials
    openai_api_key: str = Field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""), alias="openAiApiKey")
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""), alias="anthropicApiKey"
    )
    venice_api_key: str = Field(default_factory=lambda: os.getenv("VENICE_API_KEY", ""), alias="veniceApiKey")

    # Model selection and style exemplar
    summarization_model: str = Field(
        default_factory=lambda: os.getenv("INKWELL_SUMMARIZATION_MODEL", ""), alias="summarizationModel"
    )
    creative_model: str = Field(
        default_factory=lambda: os.getenv("INKWELL_CREATIVE_MODEL", ""), alias="creativeModel"
    )
    writing_style_file: str = Field(
        default_factory=lambda: os.getenv("INKWELL_WRITING_STYLE_FILE", ""), alias="writingStyleFile"
    )
    vault_path: str = Field(default_factory=lambda: os.getenv("INKWELL_VAULT_PATH", "."))

    # Endpoints
    openai_base_url: str = Field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", OPENAI_API_BASE))
    venice_base_url: str = Field(default_factory=lambda: os.getenv("VENICE_BASE_URL", VENICE_API_BASE))
    anthropic_base_url: str = Field(default_factory=lambda: os.getenv("ANTHROPIC_BASE_URL", ANTHROPIC_API_BASE))
    upstream_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "60"))
    )

    # Settings persistence
    settings_path: str = Field(default_factory=lambda: os.getenv("INKWELL_SETTINGS_PATH", "inkwell-settings.json"))
    settings_fernet_key: str | None = Field(default_factory=lambda: os.getenv("INKWELL_SETTINGS_FERNET_KEY"))

    # Observability
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = Field(default_factory=lambda: os.getenv("LOG_FORMAT", "console"))
    enable_metrics: bool = Field(
        default_factory=lambda: os.getenv("ENABLE_METRICS", "false").lower() == "true"
    )
    metrics_bind: str = Field(default_factory=lambda: os.getenv("METRICS_BIND", "127.0.0.1"))
    metrics_port: int = Field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9109")))

    # Command bridge
    bridge_host: str = Field(default_factory=lambda: os.getenv("INKWELL_BRIDGE_HOST", "127.0.0.1"))
    bridge_port: int = Field(default_factory=lambda: int(os.getenv("INKWELL_BRIDGE_PORT", "8765")))
    server_auth_token: str | None = Field(default_factory=lambda: os.getenv("SERVER_AUTH_TOKEN"))
    max_request_body_bytes: int = Field(
        default_factory=lambda: int(os.getenv("MAX_REQUEST_BODY_BYTES", str(4 * 1024 * 1024)))
    )
    enable_api_docs: bool = Field(
        default_factory=lambda: os.getenv("ENABLE_API_DOCS", "false").lower() == "true"
    )

    def persisted(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, include=set(PERSISTED_FIELDS))

    def with_persisted(self, data: Mapping[str, Any]) -> "InkwellConfig":
        """Overlay stored settings (camelCase or field names) on this config."""
        aliases = {type(self).model_fields[name].alias: name for name in PERSISTED_FIELDS}
        update: dict[str, str] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name in PERSISTED_FIELDS and value is not None:
                update[name] = str(value)
        return self.model_copy(update=update)

    def secrets(self) -> list[str]:
        candidates = (
            self.openai_api_key,
            self.anthropic_api_key,
            self.venice_api_key,
            self.settings_fernet_key,
            self.server_auth_token,
        )
        return [s for s in candidates if s]
