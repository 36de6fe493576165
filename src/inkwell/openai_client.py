from __future__ import annotations

import httpx
import structlog
from pydantic import ValidationError

from .client import DEFAULT_TEMPERATURE, build_chat_request, first_choice_text
from .config import OPENAI_API_BASE, VENICE_API_BASE
from .errors import ConfigurationError, ResponseShapeError
from .models import CompletionRequest, CompletionResponse, ModelList, ModelObject
from .session import ProviderSession

log = structlog.get_logger()


class OpenAICompatibleClient:
    """Adapter for any endpoint speaking the OpenAI chat-completions schema."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_API_BASE,
        *,
        name: str = "openai",
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60,
    ):
        if not api_key:
            raise ConfigurationError(f"Missing API key for {name}.")
        self.name = name
        self.session = ProviderSession(
            provider=name,
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            client=client,
            timeout_seconds=timeout_seconds,
        )

    async def close(self) -> None:
        await self.session.close()

    async def list_models(self) -> list[ModelObject]:
        data = await self.session.request_json("GET", "models")
        try:
            models = ModelList.model_validate(data).data
        except ValidationError as e:
            raise ResponseShapeError(f"Unexpected models listing from {self.name}.", provider=self.name) from e
        log.info("provider_models_listed", provider=self.name, count=len(models))
        return models

    async def create_completion(self, request: CompletionRequest) -> CompletionResponse:
        data = await self.session.request_json("POST", "chat/completions", request.to_payload())
        try:
            return CompletionResponse.model_validate(data)
        except ValidationError as e:
            raise ResponseShapeError(
                f"Unexpected completion body from {self.name}.", provider=self.name
            ) from e

    async def create_chat_completion(
        self,
        message: str,
        model: str,
        system_prompt: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int | None = None,
    ) -> str:
        request = build_chat_request(message, model, system_prompt, temperature, max_tokens)
        response = await self.create_completion(request)
        return first_choice_text(response, provider=self.name)


def venice_client(
    api_key: str,
    base_url: str = VENICE_API_BASE,
    *,
    client: httpx.AsyncClient | None = None,
    timeout_seconds: float = 60,
) -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        api_key,
        base_url,
        name="venice",
        client=client,
        timeout_seconds=timeout_seconds,
    )
