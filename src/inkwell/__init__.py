from .anthropic_client import AnthropicClient
from .assistant import COMMANDS, Outcome, WritingAssistant
from .client import ProviderClient
from .config import InkwellConfig
from .errors import (
    AuthenticationError,
    ConfigurationError,
    InkwellError,
    ProviderError,
    RateLimitError,
    ResourceNotFoundError,
    ResponseShapeError,
)
from .models import CompletionRequest, CompletionResponse, ModelObject
from .openai_client import OpenAICompatibleClient, venice_client
from .operations import Creator, Summarizer

__all__ = [
    "AnthropicClient",
    "AuthenticationError",
    "COMMANDS",
    "CompletionRequest",
    "CompletionResponse",
    "ConfigurationError",
    "Creator",
    "InkwellConfig",
    "InkwellError",
    "ModelObject",
    "OpenAICompatibleClient",
    "Outcome",
    "ProviderClient",
    "ProviderError",
    "RateLimitError",
    "ResourceNotFoundError",
    "ResponseShapeError",
    "Summarizer",
    "WritingAssistant",
    "venice_client",
]
