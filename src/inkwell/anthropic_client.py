from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from .client import DEFAULT_TEMPERATURE, build_chat_request, first_choice_text
from .config import ANTHROPIC_API_BASE
from .errors import ConfigurationError, ResponseShapeError
from .models import (
    AnthropicMessage,
    AnthropicMessagesRequest,
    AnthropicMessagesResponse,
    CompletionRequest,
    CompletionResponse,
    ModelObject,
    make_completion_response,
)
from .session import ProviderSession

log = structlog.get_logger()

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096

# The messages API has no listing endpoint we rely on.
STATIC_MODELS: tuple[ModelObject, ...] = (
    ModelObject(id="claude-3-haiku-20240307", created=0, owned_by="anthropic"),
    ModelObject(id="claude-3-5-sonnet-latest", created=0, owned_by="anthropic"),
)


def to_messages_request(request: CompletionRequest) -> AnthropicMessagesRequest:
    """Hoist system messages into the top-level `system` field."""
    system_parts: list[str] = []
    messages: list[AnthropicMessage] = []
    for msg in request.messages:
        if msg.role == "system":
            if msg.content:
                system_parts.append(msg.content)
            continue
        messages.append(AnthropicMessage(role=msg.role, content=msg.content))

    return AnthropicMessagesRequest(
        model=request.model,
        messages=messages,
        system="\n\n".join(system_parts) or None,
        temperature=request.temperature,
        max_tokens=request.max_tokens if request.max_tokens is not None else DEFAULT_MAX_TOKENS,
    )


class AnthropicClient:
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: str = ANTHROPIC_API_BASE,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60,
    ):
        if not api_key:
            raise ConfigurationError("Missing API key for anthropic.")
        self.session = ProviderSession(
            provider=self.name,
            base_url=base_url,
            headers={"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
            client=client,
            timeout_seconds=timeout_seconds,
        )

    async def close(self) -> None:
        await self.session.close()

    async def list_models(self) -> list[ModelObject]:
        return list(STATIC_MODELS)

    async def create_completion(self, request: CompletionRequest) -> CompletionResponse:
        body = to_messages_request(request)
        data = await self.session.request_json("POST", "messages", body.to_payload())
        try:
            parsed = AnthropicMessagesResponse.model_validate(data)
        except ValidationError as e:
            raise ResponseShapeError("Unexpected messages body from anthropic.", provider=self.name) from e

        if not parsed.content:
            raise ResponseShapeError("Missing content in anthropic response.", provider=self.name)
        text = parsed.content[0].text
        if not isinstance(text, str):
            raise ResponseShapeError("Missing text in anthropic response.", provider=self.name)

        log.debug("anthropic_completion_ok", model=request.model, chars=len(text))
        # No stable id or usage on this path; the envelope carries zeros.
        return make_completion_response(content=text)

    async def create_chat_completion(
        self,
        message: str,
        model: str,
        system_prompt: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int | None = DEFAULT_MAX_TOKENS,
    ) -> str:
        request = build_chat_request(message, model, system_prompt, temperature, max_tokens)
        response = await self.create_completion(request)
        return first_choice_text(response, provider=self.name)
