"""Local HTTP bridge that lets an editor host drive the assistant's commands."""

from contextlib import asynccontextmanager
from typing import Any

from pydantic import BaseModel, Field

from .assistant import COMMANDS, WritingAssistant
from .config import InkwellConfig
from .editor import NoticeLog, TextDocument
from .errors import ConfigurationError
from .http_security import install_middlewares
from .logging import configure_logging, redact
from .metrics import bridge_requests_total, maybe_start_metrics
from .models import ModelObject, make_error_response
from .settings_store import load_config, save_config


class CommandRequest(BaseModel):
    text: str
    selection_start: int | None = Field(default=None, ge=0)
    selection_end: int | None = Field(default=None, ge=0)


class CommandResponse(BaseModel):
    outcome: str
    text: str
    cursor: int
    notices: list[str]


class CommandInfo(BaseModel):
    id: str
    name: str


class ModelCatalog(BaseModel):
    object: str = "list"
    data: list[ModelObject]
    notices: list[str] = Field(default_factory=list)


def create_app(cfg: InkwellConfig | None = None, assistant: WritingAssistant | None = None):
    try:
        from fastapi import FastAPI, Request
        from fastapi.responses import JSONResponse
    except ImportError as e:  # pragma: no cover
        raise RuntimeError('Install the "server" extra: pip install -e ".[server]"') from e

    cfg = cfg or load_config()
    configure_logging(level=cfg.log_level, fmt=cfg.log_format, secrets=cfg.secrets())
    assistant = assistant or WritingAssistant(cfg, notifier=NoticeLog())
    state: dict[str, InkwellConfig] = {"cfg": cfg}

    def _request_id(request) -> str | None:
        return getattr(getattr(request, "state", None), "request_id", None)

    def _observe(path: str, status_code: int) -> None:
        bridge_requests_total.labels(path=path, status=str(status_code)).inc()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        maybe_start_metrics(enable=cfg.enable_metrics, bind=cfg.metrics_bind, port=cfg.metrics_port)
        await assistant.ensure_loaded()
        try:
            yield
        finally:
            await assistant.close()

    app = FastAPI(
        title="inkwell-bridge",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if cfg.enable_api_docs else None,
        redoc_url="/redoc" if cfg.enable_api_docs else None,
        openapi_url="/openapi.json" if cfg.enable_api_docs else None,
    )
    install_middlewares(app, cfg=cfg)

    @app.exception_handler(ConfigurationError)
    async def _config_error_handler(request: Request, exc: ConfigurationError):
        return JSONResponse(
            status_code=400,
            content=make_error_response(
                message=str(exc),
                type="invalid_request_error",
                code=_request_id(request),
            ).model_dump(),
        )

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/v1/models", response_model=ModelCatalog)
    async def list_models():
        await assistant.ensure_loaded()
        _observe("/v1/models", 200)
        return ModelCatalog(data=assistant.models, notices=assistant.startup_notices)

    @app.get("/v1/commands", response_model=list[CommandInfo])
    async def list_commands():
        return [CommandInfo(id=command_id, name=name) for command_id, name in COMMANDS.items()]

    @app.post("/v1/commands/{command_id}", response_model=CommandResponse)
    async def run_command(command_id: str, req: CommandRequest, request: Request):
        if command_id not in COMMANDS:
            _observe("/v1/commands", 404)
            return JSONResponse(
                status_code=404,
                content=make_error_response(
                    message=f"Unknown command: {command_id}",
                    type="invalid_request_error",
                    code=_request_id(request),
                ).model_dump(),
            )

        doc = TextDocument(req.text, anchor=req.selection_start, head=req.selection_end)
        notices = NoticeLog()
        outcome = await assistant.run_command(command_id, doc, notices)
        _observe("/v1/commands", 200)
        return CommandResponse(
            outcome=outcome.value,
            text=doc.get_value(),
            cursor=doc.cursor_offset(),
            notices=notices.messages,
        )

    @app.put("/v1/settings")
    async def update_settings(values: dict[str, Any]) -> dict[str, Any]:
        updated = state["cfg"].with_persisted(values)
        save_config(updated)
        state["cfg"] = updated
        _observe("/v1/settings", 200)
        # Clients and the model catalog are built at startup.
        return {"settings": redact(updated.persisted(), secrets=updated.secrets()), "reload_required": True}

    return app


def main() -> None:  # pragma: no cover
    try:
        import uvicorn
    except ImportError as e:
        raise RuntimeError('Install the "server" extra: pip install -e ".[server]"') from e

    cfg = load_config()
    uvicorn.run(create_app(cfg), host=cfg.bridge_host, port=cfg.bridge_port)


if __name__ == "__main__":  # pragma: no cover
    main()
