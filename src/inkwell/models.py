from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Role = Literal["system", "user", "assistant"]


class ModelObject(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    created: int = 0
    owned_by: str = ""

    @field_validator("created", mode="before")
    @classmethod
    def _null_created(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("owned_by", mode="before")
    @classmethod
    def _null_owner(cls, v: Any) -> Any:
        return "" if v is None else v


class ModelList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[ModelObject]


class ChatMessage(BaseModel):
    role: Role
    content: str


class CompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    temperature: float | None = None
    max_tokens: int | None = None

    @field_validator("messages")
    @classmethod
    def _validate_messages(cls, v: list[ChatMessage]) -> list[ChatMessage]:
        if not v:
            raise ValueError("messages must contain at least one message.")
        return v

    @model_validator(mode="after")
    def _validate_system_order(self) -> "CompletionRequest":
        seen_user = False
        for msg in self.messages:
            if msg.role == "user":
                seen_user = True
            elif msg.role == "system" and seen_user:
                raise ValueError("system messages must precede the first user message.")
        return self

    @field_validator("temperature")
    @classmethod
    def _validate_temperature(cls, v: float | None) -> float | None:
        if v is None:
            return None
        if not (0.0 <= v <= 2.0):
            raise ValueError("temperature must be between 0 and 2.")
        return v

    @field_validator("max_tokens")
    @classmethod
    def _validate_max_tokens(cls, v: int | None) -> int | None:
        if v is None:
            return None
        if v <= 0:
            raise ValueError("max_tokens must be > 0.")
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Usage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @field_validator("prompt_tokens", "completion_tokens", "total_tokens", mode="before")
    @classmethod
    def _null_count(cls, v: Any) -> Any:
        return 0 if v is None else v


class AssistantMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Role = "assistant"
    content: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _null_role(cls, v: Any) -> Any:
        return "assistant" if v is None else v


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: AssistantMessage
    finish_reason: str | None = "stop"

    @field_validator("index", mode="before")
    @classmethod
    def _null_index(cls, v: Any) -> Any:
        return 0 if v is None else v


class CompletionResponse(BaseModel):
    """
    OpenAI-schema completion envelope.

    Only the choice text is load-bearing; compatible backends that send
    `null` for `id`, `usage` or a usage counter get the defaults instead.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)

    @field_validator("id", mode="before")
    @classmethod
    def _null_id(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("usage", mode="before")
    @classmethod
    def _null_usage(cls, v: Any) -> Any:
        return Usage() if v is None else v


def make_completion_response(*, content: str, response_id: str = "") -> CompletionResponse:
    return CompletionResponse(
        id=response_id,
        choices=[Choice(message=AssistantMessage(content=content), finish_reason="stop")],
        usage=Usage(),
    )


class AnthropicMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AnthropicMessagesRequest(BaseModel):
    model: str
    messages: list[AnthropicMessage]
    system: str | None = None
    temperature: float | None = None
    max_tokens: int = 4096

    @field_validator("max_tokens")
    @classmethod
    def _validate_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_tokens must be > 0.")
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AnthropicContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "text"
    text: str | None = None


class AnthropicMessagesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: list[AnthropicContentBlock]


class ErrorBody(BaseModel):
    message: str
    type: str = "api_error"
    code: str | None = None


class ErrorResponse(BaseModel):
    error: ErrorBody


def make_error_response(*, message: str, type: str = "api_error", code: str | None = None) -> ErrorResponse:
    return ErrorResponse(error=ErrorBody(message=message, type=type, code=code))
