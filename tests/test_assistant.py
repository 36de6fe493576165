import httpx
import pytest

from inkwell.assistant import COMMANDS, Outcome, WritingAssistant
from inkwell.config import InkwellConfig
from inkwell.editor import LOADING_MARKER, NoticeLog, TextDocument
from inkwell.errors import AuthenticationError, ProviderError, ResponseShapeError
from inkwell.models import ModelObject
from inkwell.openai_client import OpenAICompatibleClient
from inkwell.style import StoredFile


class StubClient:
    def __init__(self, name, *, reply="generated", models=(), error=None, listing_error=None):
        self.name = name
        self.reply = reply
        self.models = [ModelObject(id=m, owned_by=name) for m in models]
        self.error = error
        self.listing_error = listing_error
        self.calls = []
        self.seen_documents = []
        self.closed = False
        self.document = None

    async def list_models(self):
        if self.listing_error is not None:
            raise self.listing_error
        return list(self.models)

    async def create_completion(self, request):  # pragma: no cover - not used by commands
        raise NotImplementedError

    async def create_chat_completion(self, message, model, system_prompt=None, temperature=0.7, max_tokens=None):
        self.calls.append({"message": message, "model": model, "system_prompt": system_prompt})
        if self.document is not None:
            self.seen_documents.append(self.document.get_value())
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self):
        self.closed = True


class MemoryStore:
    def __init__(self, files):
        self._files = files

    def files(self):
        return [StoredFile(path=p, name=p.rsplit("/", 1)[-1], basename=p.rsplit("/", 1)[-1].split(".")[0]) for p in self._files]

    def read(self, file):
        value = self._files[file.path]
        if isinstance(value, Exception):
            raise value
        return value


def _cfg(**overrides) -> InkwellConfig:
    values = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "venice_api_key": "",
        "summarization_model": "llama-3.3-70b",
        "creative_model": "claude-3-5-sonnet-latest",
        "writing_style_file": "",
    }
    values.update(overrides)
    return InkwellConfig(**values)


def _assistant(clients, **cfg_overrides):
    notices = NoticeLog()
    store = cfg_overrides.pop("store", MemoryStore({}))
    assistant = WritingAssistant(_cfg(**cfg_overrides), notifier=notices, store=store, clients=clients)
    return assistant, notices


@pytest.mark.asyncio
async def test_load_collects_catalog_and_binds_operations():
    venice = StubClient("venice", models=["llama-3.3-70b"])
    anthropic = StubClient("anthropic", models=["claude-3-haiku-20240307", "claude-3-5-sonnet-latest"])
    assistant, notices = _assistant({"venice": venice, "anthropic": anthropic})

    await assistant.ensure_loaded()

    assert [m.id for m in assistant.models] == [
        "llama-3.3-70b",
        "claude-3-haiku-20240307",
        "claude-3-5-sonnet-latest",
    ]
    assert assistant.summarizer.client is venice
    assert assistant.creator.client is anthropic
    assert notices.messages == []


@pytest.mark.asyncio
async def test_operations_route_to_provider_listing_the_model():
    openai = StubClient("openai", models=["gpt-4o"])
    venice = StubClient("venice", models=["llama-3.3-70b"])
    assistant, _ = _assistant({"openai": openai, "venice": venice}, creative_model="gpt-4o", summarization_model="gpt-4o")
    await assistant.ensure_loaded()
    assert assistant.summarizer.client is openai
    assert assistant.creator.client is openai


@pytest.mark.asyncio
async def test_model_listing_failure_does_not_abort_startup():
    venice = StubClient("venice", listing_error=ProviderError("venice returned HTTP 500", provider="venice", status=500))
    anthropic = StubClient("anthropic", models=["claude-3-5-sonnet-latest"])
    assistant, notices = _assistant({"venice": venice, "anthropic": anthropic})

    await assistant.ensure_loaded()

    assert [m.id for m in assistant.models] == ["claude-3-5-sonnet-latest"]
    assert assistant.summarizer.client is venice
    assert any("Failed to list models from venice" in n for n in notices.messages)
    assert assistant.startup_notices == notices.messages


@pytest.mark.asyncio
async def test_writing_style_loaded_into_creator():
    store = MemoryStore({"notes/style.md": "Terse. Cold. Exact."})
    anthropic = StubClient("anthropic", models=["claude-3-5-sonnet-latest"])
    assistant, _ = _assistant({"anthropic": anthropic}, writing_style_file="style.md", store=store)

    await assistant.ensure_loaded()
    await assistant.run_command("reword-selected-text", TextDocument("x", anchor=0, head=1))

    assert assistant.creator.writing_style == "Terse. Cold. Exact."
    assert "Terse. Cold. Exact." in anthropic.calls[0]["system_prompt"]


@pytest.mark.asyncio
async def test_missing_writing_style_is_a_warning_not_a_failure():
    anthropic = StubClient("anthropic")
    assistant, notices = _assistant({"anthropic": anthropic}, writing_style_file="voice.md")

    await assistant.ensure_loaded()

    assert assistant.writing_style is None
    assert assistant.creator is not None
    assert assistant.creator.writing_style is None
    assert notices.messages == ["Writing style file not found"]
    assert assistant.startup_notices == ["Writing style file not found"]


@pytest.mark.asyncio
async def test_unreadable_writing_style_is_a_warning_not_a_failure():
    store = MemoryStore({"style.md": PermissionError("denied")})
    assistant, notices = _assistant({"anthropic": StubClient("anthropic")}, writing_style_file="style.md", store=store)

    await assistant.ensure_loaded()

    assert assistant.writing_style is None
    assert notices.messages == ["Failed to load writing style file"]


@pytest.mark.asyncio
async def test_summarize_inserts_fenced_summary_after_selection():
    venice = StubClient("venice", reply="1. Point", models=["llama-3.3-70b"])
    assistant, notices = _assistant({"venice": venice})
    doc = TextDocument("Article body.", anchor=0, head=13)
    venice.document = doc

    outcome = await assistant.run_command("summarize-selected-text", doc)

    assert outcome is Outcome.OK
    assert venice.calls[0]["message"] == "Article body."
    assert venice.seen_documents == ["Article body." + LOADING_MARKER]
    fence = "#" * 25
    assert doc.get_value() == f"Article body.\n\n{fence}\nSummary:\n1. Point\n{fence}\n"
    assert LOADING_MARKER not in doc.get_value()
    assert notices.messages == []


@pytest.mark.asyncio
async def test_reword_inserts_fenced_block():
    anthropic = StubClient("anthropic", reply="She smiled.")
    assistant, _ = _assistant({"anthropic": anthropic})
    doc = TextDocument("she was happy", anchor=0, head=13)

    assert await assistant.run_command("reword-selected-text", doc) is Outcome.OK

    fence = "#" * 24
    assert doc.get_value() == f"she was happy\n\n{fence}\nReworded:\nShe smiled.\n{fence}\n"


@pytest.mark.asyncio
async def test_generate_paragraph_falls_back_to_whole_document():
    anthropic = StubClient("anthropic", reply=" Then the door opened.")
    assistant, _ = _assistant({"anthropic": anthropic})
    doc = TextDocument("It was quiet.")

    assert await assistant.run_command("generate-paragraph", doc) is Outcome.OK

    assert anthropic.calls[0]["message"] == "It was quiet."
    assert doc.get_value() == "It was quiet. Then the door opened."


@pytest.mark.asyncio
async def test_generate_outline_uses_whole_document_and_cleans_placeholder():
    anthropic = StubClient("anthropic", reply="I. Setup")
    assistant, _ = _assistant({"anthropic": anthropic})
    doc = TextDocument("A heist.\nOn the moon.", anchor=0, head=2)
    anthropic.document = doc

    assert await assistant.run_command("generate-outline", doc) is Outcome.OK

    assert anthropic.calls[0]["message"] == "A heist.\nOn the moon."
    assert anthropic.seen_documents == ["A " + LOADING_MARKER + "heist.\nOn the moon."]
    assert doc.get_value() == "A I. Setupheist.\nOn the moon."


@pytest.mark.parametrize("command_id", list(COMMANDS))
@pytest.mark.parametrize(
    "error",
    [
        AuthenticationError("anthropic returned HTTP 401: invalid x-api-key", provider="anthropic", status=401),
        ResponseShapeError("Provider response contained no choices."),
        RuntimeError("unexpected"),
    ],
)
@pytest.mark.asyncio
async def test_failures_leave_no_placeholder_and_become_notices(command_id, error):
    clients = {
        "venice": StubClient("venice", error=error),
        "anthropic": StubClient("anthropic", error=error),
    }
    assistant, notices = _assistant(clients)
    doc = TextDocument("Some story text.", anchor=0, head=4)

    outcome = await assistant.run_command(command_id, doc)

    assert outcome in (Outcome.PROVIDER_ERROR, Outcome.ERROR)
    assert doc.get_value() == "Some story text."
    assert doc.get_value().count(LOADING_MARKER) == 0
    assert len(notices.messages) == 1
    assert notices.messages[0].startswith("Error generating ")
    assert str(error) in notices.messages[0]


@pytest.mark.asyncio
async def test_http_401_surfaces_as_provider_error_notice():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

    venice = OpenAICompatibleClient(
        "bad", name="venice", client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    assistant, notices = _assistant({"venice": venice})
    assistant._loaded = True
    assistant._bind_operations()
    doc = TextDocument("text", anchor=0, head=4)
    try:
        outcome = await assistant.summarize_selected_text(doc)
    finally:
        await assistant.close()

    assert outcome is Outcome.PROVIDER_ERROR
    assert notices.messages == ["Error generating summary: venice returned HTTP 401: Invalid API key"]
    assert doc.get_value() == "text"


@pytest.mark.asyncio
async def test_missing_provider_is_a_configuration_notice_without_document_change():
    assistant, notices = _assistant({})
    doc = TextDocument("text", anchor=0, head=4)

    outcome = await assistant.run_command("summarize-selected-text", doc)

    assert outcome is Outcome.CONFIGURATION_ERROR
    assert doc.get_value() == "text"
    assert notices.messages == ["No API key set for summarization (Venice or OpenAI)."]


@pytest.mark.asyncio
async def test_missing_model_is_a_configuration_notice():
    anthropic = StubClient("anthropic")
    assistant, notices = _assistant({"anthropic": anthropic}, creative_model="")
    doc = TextDocument("text", anchor=0, head=4)

    assert await assistant.run_command("generate-paragraph", doc) is Outcome.CONFIGURATION_ERROR
    assert notices.messages == ["No creative model selected."]
    assert anthropic.calls == []


@pytest.mark.parametrize("command_id", ["reword-selected-text", "summarize-selected-text"])
@pytest.mark.asyncio
async def test_selection_commands_require_selection(command_id):
    clients = {"venice": StubClient("venice"), "anthropic": StubClient("anthropic")}
    assistant, notices = _assistant(clients)
    doc = TextDocument("unselected text")

    assert await assistant.run_command(command_id, doc) is Outcome.NO_SELECTION
    assert notices.messages == ["No text selected"]
    assert doc.get_value() == "unselected text"
    assert clients["venice"].calls == [] and clients["anthropic"].calls == []


@pytest.mark.asyncio
async def test_empty_document_outline_is_rejected():
    anthropic = StubClient("anthropic")
    assistant, notices = _assistant({"anthropic": anthropic})

    assert await assistant.run_command("generate-outline", TextDocument("")) is Outcome.NO_SELECTION
    assert anthropic.calls == []


@pytest.mark.asyncio
async def test_empty_result_leaves_document_untouched():
    anthropic = StubClient("anthropic", reply="")
    assistant, notices = _assistant({"anthropic": anthropic})
    doc = TextDocument("text")

    assert await assistant.run_command("generate-paragraph", doc) is Outcome.EMPTY
    assert doc.get_value() == "text"
    assert notices.messages == ["The model returned an empty paragraph."]


@pytest.mark.asyncio
async def test_per_call_notifier_overrides_default():
    assistant, default_notices = _assistant({})
    call_notices = NoticeLog()

    await assistant.run_command("generate-outline", TextDocument("idea"), call_notices)

    assert default_notices.messages == []
    assert call_notices.messages == ["No API key set for creative writing (Anthropic, OpenAI or Venice)."]


@pytest.mark.asyncio
async def test_unknown_command_raises_key_error():
    assistant, _ = _assistant({})
    with pytest.raises(KeyError):
        await assistant.run_command("translate", TextDocument("x"))


@pytest.mark.asyncio
async def test_clients_built_from_configured_keys():
    assistant = WritingAssistant(
        _cfg(openai_api_key="sk-o", venice_api_key="v-key", anthropic_api_key="sk-ant"),
        notifier=NoticeLog(),
        store=MemoryStore({}),
    )
    assistant._build_clients()
    try:
        assert sorted(assistant.clients) == ["anthropic", "openai", "venice"]
        assert assistant.clients["venice"].session.base_url == "https://api.venice.ai/api/v1/"
        assert assistant.clients["anthropic"].session.base_url == "https://api.anthropic.com/v1/"
    finally:
        await assistant.close()


@pytest.mark.asyncio
async def test_close_closes_every_client():
    clients = {"venice": StubClient("venice"), "anthropic": StubClient("anthropic")}
    assistant, _ = _assistant(clients)
    await assistant.close()
    assert all(c.closed for c in clients.values())
