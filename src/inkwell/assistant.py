from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum

import structlog

from .anthropic_client import AnthropicClient
from .client import ProviderClient
from .config import InkwellConfig
from .editor import Editor, Notifier, Position, loading_placeholder
from .errors import ConfigurationError, ProviderError, ResourceNotFoundError
from .metrics import command_invocations_total
from .models import ModelObject
from .openai_client import OpenAICompatibleClient, venice_client
from .operations import Creator, Summarizer
from .style import DirectoryStore, DocumentStore, read_writing_style

log = structlog.get_logger()

COMMANDS: dict[str, str] = {
    "reword-selected-text": "Reword Selected Text",
    "summarize-selected-text": "Summarize Selected Text",
    "generate-paragraph": "Generate Paragraph",
    "generate-outline": "Generate Outline",
}

# Fallback bindings when the selected model is not in any provider's catalog.
SUMMARIZER_PROVIDERS = ("venice", "openai")
CREATOR_PROVIDERS = ("anthropic", "openai", "venice")

REWORD_FENCE = "#" * 24
SUMMARY_FENCE = "#" * 25


class Outcome(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    NO_SELECTION = "no_selection"
    CONFIGURATION_ERROR = "configuration_error"
    PROVIDER_ERROR = "provider_error"
    ERROR = "error"


Operation = Callable[[str], Awaitable[str]]
Placement = Callable[[Editor, Position, str], None]


def _fenced(title: str, fence: str) -> Placement:
    def _place(editor: Editor, position: Position, result: str) -> None:
        editor.replace_range(f"\n\n{fence}\n{title}:\n{result}\n{fence}\n", position)

    return _place


def _inline(editor: Editor, position: Position, result: str) -> None:
    editor.replace_range(result, position)


class WritingAssistant:
    """
    Root controller: owns the provider clients, the model catalog and the
    two operation objects, and runs editor commands against them.

    Command failures never propagate to the host; they become notices.
    """

    def __init__(
        self,
        cfg: InkwellConfig,
        *,
        notifier: Notifier,
        store: DocumentStore | None = None,
        clients: Mapping[str, ProviderClient] | None = None,
    ):
        self.cfg = cfg
        self.notifier = notifier
        self.store = store or DirectoryStore(cfg.vault_path)
        self.clients: dict[str, ProviderClient] = dict(clients or {})
        self._clients_injected = clients is not None
        self.models: list[ModelObject] = []
        self._model_owners: dict[str, str] = {}
        self.writing_style: str | None = None
        self.startup_notices: list[str] = []
        self.summarizer: Summarizer | None = None
        self.creator: Creator | None = None
        self._loaded = False
        self._load_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    async def ensure_loaded(self) -> None:
        async with self._load_lock:
            if not self._loaded:
                await self.load()

    async def load(self) -> None:
        self.startup_notices = []
        self.writing_style = self._load_writing_style()
        if not self._clients_injected:
            self._build_clients()

        self.models = []
        self._model_owners = {}
        for name, client in self.clients.items():
            try:
                models = await client.list_models()
            except ProviderError as e:
                log.warning("model_listing_failed", provider=name, status=e.status, error=str(e))
                self._startup_notice(f"Failed to list models from {name}: {e}")
                continue
            for model in models:
                self.models.append(model)
                self._model_owners.setdefault(model.id, name)

        self._bind_operations()
        self._loaded = True
        log.info(
            "assistant_loaded",
            providers=sorted(self.clients),
            models=len(self.models),
            writing_style=self.writing_style is not None,
        )

    def _startup_notice(self, message: str) -> None:
        self.startup_notices.append(message)
        self.notifier.notify(message)

    def _load_writing_style(self) -> str | None:
        reference = self.cfg.writing_style_file
        if not reference:
            return None
        try:
            return read_writing_style(self.store, reference)
        except ResourceNotFoundError:
            log.warning("writing_style_missing", reference=reference)
            self._startup_notice("Writing style file not found")
        except (OSError, UnicodeDecodeError) as e:
            log.warning("writing_style_unreadable", reference=reference, error=str(e))
            self._startup_notice("Failed to load writing style file")
        return None

    def _build_clients(self) -> None:
        timeout = self.cfg.upstream_timeout_seconds
        if self.cfg.openai_api_key:
            self.clients["openai"] = OpenAICompatibleClient(
                self.cfg.openai_api_key, self.cfg.openai_base_url, timeout_seconds=timeout
            )
        if self.cfg.venice_api_key:
            self.clients["venice"] = venice_client(
                self.cfg.venice_api_key, self.cfg.venice_base_url, timeout_seconds=timeout
            )
        if self.cfg.anthropic_api_key:
            self.clients["anthropic"] = AnthropicClient(
                self.cfg.anthropic_api_key, self.cfg.anthropic_base_url, timeout_seconds=timeout
            )

    def client_for(self, model: str, preference: tuple[str, ...]) -> ProviderClient | None:
        owner = self._model_owners.get(model)
        if owner is not None and owner in self.clients:
            return self.clients[owner]
        for name in preference:
            if name in self.clients:
                return self.clients[name]
        return None

    def _bind_operations(self) -> None:
        summary_client = self.client_for(self.cfg.summarization_model, SUMMARIZER_PROVIDERS)
        self.summarizer = Summarizer(summary_client, self.cfg.summarization_model) if summary_client else None

        creative_client = self.client_for(self.cfg.creative_model, CREATOR_PROVIDERS)
        self.creator = (
            Creator(creative_client, self.cfg.creative_model, self.writing_style) if creative_client else None
        )

    async def close(self) -> None:
        for client in self.clients.values():
            await client.close()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def _require_summarizer(self) -> Summarizer:
        if self.summarizer is None:
            raise ConfigurationError("No API key set for summarization (Venice or OpenAI).")
        if not self.summarizer.model:
            raise ConfigurationError("No summarization model selected.")
        return self.summarizer

    def _require_creator(self) -> Creator:
        if self.creator is None:
            raise ConfigurationError("No API key set for creative writing (Anthropic, OpenAI or Venice).")
        if not self.creator.model:
            raise ConfigurationError("No creative model selected.")
        return self.creator

    async def run_command(self, command_id: str, editor: Editor, notifier: Notifier | None = None) -> Outcome:
        handlers = {
            "reword-selected-text": self.reword_selected_text,
            "summarize-selected-text": self.summarize_selected_text,
            "generate-paragraph": self.generate_paragraph,
            "generate-outline": self.generate_outline,
        }
        handler = handlers[command_id]
        await self.ensure_loaded()
        return await handler(editor, notifier)

    async def reword_selected_text(self, editor: Editor, notifier: Notifier | None = None) -> Outcome:
        return await self._run(
            "reword-selected-text",
            "reworded text",
            editor,
            notifier or self.notifier,
            editor.get_selection(),
            lambda: self._require_creator().reword_content,
            _fenced("Reworded", REWORD_FENCE),
        )

    async def summarize_selected_text(self, editor: Editor, notifier: Notifier | None = None) -> Outcome:
        return await self._run(
            "summarize-selected-text",
            "summary",
            editor,
            notifier or self.notifier,
            editor.get_selection(),
            lambda: self._require_summarizer().summarize,
            _fenced("Summary", SUMMARY_FENCE),
        )

    async def generate_paragraph(self, editor: Editor, notifier: Notifier | None = None) -> Outcome:
        return await self._run(
            "generate-paragraph",
            "paragraph",
            editor,
            notifier or self.notifier,
            editor.get_selection() or editor.get_value(),
            lambda: self._require_creator().generate_paragraph,
            _inline,
        )

    async def generate_outline(self, editor: Editor, notifier: Notifier | None = None) -> Outcome:
        return await self._run(
            "generate-outline",
            "outline",
            editor,
            notifier or self.notifier,
            editor.get_value(),
            lambda: self._require_creator().generate_outline,
            _inline,
        )

    async def _run(
        self,
        command_id: str,
        label: str,
        editor: Editor,
        notifier: Notifier,
        text: str,
        resolve: Callable[[], Operation],
        place: Placement,
    ) -> Outcome:
        outcome = Outcome.OK
        try:
            operation = resolve()
            if not text:
                outcome = Outcome.NO_SELECTION
                notifier.notify("No text selected")
            else:
                with loading_placeholder(editor) as position:
                    result = await operation(text)
                if result:
                    place(editor, position, result)
                else:
                    outcome = Outcome.EMPTY
                    notifier.notify(f"The model returned an empty {label}.")
        except ConfigurationError as e:
            outcome = Outcome.CONFIGURATION_ERROR
            notifier.notify(str(e))
        except ProviderError as e:
            outcome = Outcome.PROVIDER_ERROR
            log.warning(
                "command_provider_error",
                command=command_id,
                provider=e.provider,
                status=e.status,
                error=str(e),
            )
            notifier.notify(f"Error generating {label}: {e}")
        except Exception as e:
            outcome = Outcome.ERROR
            log.exception("command_failed", command=command_id)
            notifier.notify(f"Error generating {label}: {e}")

        command_invocations_total.labels(command=command_id, outcome=outcome.value).inc()
        log.info("command_finished", command=command_id, outcome=outcome.value)
        return outcome
