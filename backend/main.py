from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import hmac
import json
import logging
import os

import uvicorn

from hubot_commands.chat import ChatResponder
from hubot_commands.config import Settings
from hubot_commands.errors import ConfigurationError
from hubot_commands.explain import EXPLAIN_USAGE, ExplainService, is_help_query
from hubot_commands.meet_link import MEET_HELP, MEET_ICON_URL, generate_meet_link
from hubot_commands.sheets import SheetSource, SpreadsheetClient

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


def build_chat_responder(robot_name: str, explain_service: ExplainService) -> ChatResponder:
    chat = ChatResponder(robot_name)

    @chat.respond(r"meet (.*)")
    def meet(match):
        return generate_meet_link(match.group(1))

    @chat.respond(r"explain (.*)")
    async def explain(match):
        return await explain_service.answer(match.group(1))

    return chat


def configure_app(app: FastAPI, settings: Settings, source: SheetSource) -> None:
    """Attach settings and the services built from them to ``app.state``."""
    explain_service = ExplainService(source)
    app.state.settings = settings
    app.state.explain_service = explain_service
    app.state.chat = build_chat_responder(settings.robot_name, explain_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting hubot commands...")
    try:
        settings = Settings.from_env()
    except ConfigurationError as exc:
        logger.error("Cannot start hubot commands: %s", exc)
        raise
    configure_app(app, settings, SpreadsheetClient(settings))
    yield
    logger.info("Shutting down hubot commands...")


app = FastAPI(
    title="Hubot Commands",
    description="Mattermost /meet and /explain commands",
    version="1.0.0",
    lifespan=lifespan
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_explain_service(request: Request) -> ExplainService:
    return request.app.state.explain_service


def get_chat_responder(request: Request) -> ChatResponder:
    return request.app.state.chat


def token_matches(expected: Optional[str], provided: Optional[str]) -> bool:
    if not expected or provided is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


async def read_command_payload(request: Request) -> Dict[str, str]:
    """Mattermost posts form-encoded bodies; JSON is accepted as well."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body: Any = await request.json()
        except json.JSONDecodeError:
            return {}
        if not isinstance(body, dict):
            return {}
        return {key: str(value) for key, value in body.items() if value is not None}
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "hubot-commands"
    }


@app.post("/hubot/meet")
async def meet_command(request: Request, settings: Settings = Depends(get_settings)):
    """Slash command: post a Google Meet link for the given participants"""
    payload = await read_command_payload(request)
    if not token_matches(settings.meet_token, payload.get("token")):
        return PlainTextResponse("Unauthorized", status_code=401)

    text = payload.get("text") or ""
    result = MEET_HELP
    if text.strip() and text.strip() != "help":
        logger.info("Meet participants: %s", text)
        result = generate_meet_link(text)

    return {"response_type": "in_channel", "icon_url": MEET_ICON_URL, "text": result}


@app.post("/hubot/explain")
async def explain_command(
    request: Request,
    settings: Settings = Depends(get_settings),
    explain_service: ExplainService = Depends(get_explain_service),
):
    """Slash command: explain a product or concept to the requesting user"""
    payload = await read_command_payload(request)
    if not token_matches(settings.explain_token, payload.get("token")):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    query = payload.get("text") or ""
    if is_help_query(query):
        return {"response_type": "ephemeral", "text": EXPLAIN_USAGE}

    logger.info("Explain query: %s", query)
    result = await explain_service.answer(query)
    return {"response_type": "ephemeral", "text": result}


@app.post("/hubot/respond")
async def respond_to_message(
    request: Request,
    settings: Settings = Depends(get_settings),
    chat: ChatResponder = Depends(get_chat_responder),
):
    """Outgoing webhook: answer chat messages addressed to the bot"""
    payload = await read_command_payload(request)
    if not token_matches(settings.outgoing_token, payload.get("token")):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    reply = await chat.dispatch(payload.get("text") or "")
    if reply is None:
        return {}
    return {"text": reply}


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )


if __name__ == "__main__":
    try:
        Settings.from_env()
    except ConfigurationError as exc:
        raise SystemExit(str(exc))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
    )
