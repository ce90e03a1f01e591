"""aiohttp application serving ``/api/transcribe`` and ``/api/chat`` on one port."""

import logging
import uuid

from aiohttp import web
from pydantic import ValidationError

from .models import ChatRequest, ChatResponse, ErrorResponse
from .. import __version__
from ..chat.base import AbstractChatEngine
from ..exceptions import UpstreamError
from ..models.audio import AudioBlob, OGG_OPUS_MIME, base_mime_type
from ..transcription.adapter import TranscriptionRequestAdapter

logger = logging.getLogger(__name__)


ADAPTER_KEY = web.AppKey("adapter", TranscriptionRequestAdapter)
CHAT_ENGINE_KEY = web.AppKey("chat_engine", AbstractChatEngine)


def _json_error(status: int, body: ErrorResponse) -> web.Response:
    return web.json_response(body.model_dump(exclude_none=True), status=status)


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map application errors to JSON responses."""
    try:
        return await handler(request)
    except UpstreamError as e:
        logger.warning(f"{request.path}: {e}")
        return _json_error(502, ErrorResponse(error=str(e), upstream_status=e.status))
    except ValidationError as e:
        return _json_error(400, ErrorResponse(error=f"Invalid request: {e.errors()[0]['msg']}"))


async def index(request: web.Request) -> web.Response:
    return web.json_response({
        "name": "voiceprompt",
        "version": __version__,
        "endpoints": ["/api/transcribe", "/api/chat"],
    })


def _mime_parameters(mime_type: str) -> dict:
    """``audio/L16; rate=16000; channels=1`` -> ``{"rate": "16000", "channels": "1"}``."""
    parameters = {}
    for part in mime_type.split(";")[1:]:
        key, _, value = part.partition("=")
        parameters[key.strip().lower()] = value.strip()
    return parameters


async def transcribe(request: web.Request) -> web.Response:
    """Transcribe the raw request body; ``?language=`` is optional."""
    language = request.query.get("language", "").strip().lower() or None
    audio_data = await request.read()
    if not audio_data:
        return _json_error(400, ErrorResponse(error="Request body is empty"))

    mime_type = request.headers.get("Content-Type", "")
    if not mime_type or base_mime_type(mime_type) == "application/octet-stream":
        mime_type = OGG_OPUS_MIME
    parameters = _mime_parameters(mime_type)

    blob = AudioBlob(
        data=audio_data,
        mime_type=mime_type,
        session_id=f"http-{uuid.uuid4().hex[:8]}",
        fragment_count=1,
        sample_rate=int(parameters["rate"]) if parameters.get("rate", "").isdigit() else None,
        channels=int(parameters["channels"]) if parameters.get("channels", "").isdigit() else None,
    )
    result = await request.app[ADAPTER_KEY].transcribe(blob, language)
    return web.Response(text=result.text, content_type="text/plain", charset="utf-8")


async def chat(request: web.Request) -> web.Response:
    """Answer ``{"prompt": ...}`` with ``{"answer": ...}``."""
    try:
        payload = await request.json()
    except ValueError:
        return _json_error(400, ErrorResponse(error="Request body is not valid JSON"))

    chat_request = ChatRequest.model_validate(payload)
    answer = await request.app[CHAT_ENGINE_KEY].send_prompt(chat_request.prompt.strip())
    return web.json_response(ChatResponse(answer=answer).model_dump())


def create_app(adapter: TranscriptionRequestAdapter, chat_engine: AbstractChatEngine) -> web.Application:
    """Build the application around an adapter and a chat engine."""
    app = web.Application(middlewares=[error_middleware], client_max_size=25 * 1024 * 1024)
    app[ADAPTER_KEY] = adapter
    app[CHAT_ENGINE_KEY] = chat_engine

    app.router.add_get("/", index)
    app.router.add_post("/api/transcribe", transcribe)
    app.router.add_post("/api/chat", chat)
    return app


def run_server(app: web.Application, host: str = "0.0.0.0", port: int = 3000) -> None:
    """Serve ``app`` until interrupted."""
    logger.info(f"VoicePrompt server listening on {host}:{port}")
    web.run_app(app, host=host, port=port, print=None)
