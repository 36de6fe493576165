from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .errors import ConfigurationError, ResponseShapeError
from .models import ChatMessage, CompletionRequest, CompletionResponse, ModelObject

DEFAULT_TEMPERATURE = 0.7


@runtime_checkable
class ProviderClient(Protocol):
    """What every provider adapter offers. Adapters satisfy it structurally."""

    name: str

    async def list_models(self) -> list[ModelObject]: ...

    async def create_completion(self, request: CompletionRequest) -> CompletionResponse: ...

    async def create_chat_completion(
        self,
        message: str,
        model: str,
        system_prompt: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int | None = None,
    ) -> str: ...

    async def close(self) -> None: ...


def build_chat_messages(message: str, system_prompt: str | None = None) -> list[ChatMessage]:
    messages = [ChatMessage(role="user", content=message)]
    if system_prompt:
        messages.insert(0, ChatMessage(role="system", content=system_prompt))
    return messages


def build_chat_request(
    message: str,
    model: str,
    system_prompt: str | None = None,
    temperature: float | None = DEFAULT_TEMPERATURE,
    max_tokens: int | None = None,
) -> CompletionRequest:
    """Build a single-turn request; invalid arguments raise `ConfigurationError`."""
    try:
        return CompletionRequest(
            model=model,
            messages=build_chat_messages(message, system_prompt),
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except ValidationError as e:
        detail = "; ".join(err["msg"] for err in e.errors())
        raise ConfigurationError(f"Invalid completion request: {detail}") from e


def first_choice_text(response: CompletionResponse, *, provider: str | None = None) -> str:
    if not response.choices:
        raise ResponseShapeError("Provider response contained no choices.", provider=provider)
    content = response.choices[0].message.content
    if not isinstance(content, str):
        raise ResponseShapeError("Provider response choice has no text content.", provider=provider)
    return content
