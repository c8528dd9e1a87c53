from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.trustedhost import TrustedHostMiddleware

from chatbot.backend import config, constants
from chatbot.backend.conversation import ConversationOrchestrator, TraceRecorder
from chatbot.backend.conversation.orchestrator import validation_failure_result
from chatbot.backend.logging_config import configure_logging
from chatbot.backend.middleware import RequestContextMiddleware
from chatbot.backend.response import error_response
from chatbot.backend.routers import chat, health
from chatbot.backend.services.completion_gateway import (
	CompletionGateway,
	LocalCompletionGateway,
	build_gateway,
)
from chatbot.backend.services.session_store import SessionStore, default_store


logger = logging.getLogger(__name__)


def create_app(
	gateway: Optional[CompletionGateway] = None,
	store: Optional[SessionStore] = None,
) -> FastAPI:
	configure_logging(config.log_level())
	gateway = gateway or build_gateway()
	store = store or default_store()

	app = FastAPI(
		title=constants.APP_NAME,
		version=constants.APP_VERSION,
	)
	app.state.orchestrator = ConversationOrchestrator(gateway, store)
	app.state.provider_mode = "local" if isinstance(gateway, LocalCompletionGateway) else "openai"
	_register_middleware(app)
	_register_handlers(app)
	_register_routers(app)
	logger.info("Chat service ready (provider=%s, model=%s)", app.state.provider_mode, gateway.model)
	return app


def _register_middleware(app: FastAPI) -> None:
	app.add_middleware(RequestContextMiddleware)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=constants.DEFAULT_CORS_ALLOW_ORIGINS,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.add_middleware(
		TrustedHostMiddleware,
		allowed_hosts=constants.DEFAULT_TRUSTED_HOSTS,
	)


def _register_routers(app: FastAPI) -> None:
	app.include_router(chat.router)
	app.include_router(health.router)


def _register_handlers(app: FastAPI) -> None:
	@app.exception_handler(HTTPException)
	async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
		payload = error_response(
			code=f"http_{exc.status_code}",
			message=_exc_message(exc.detail),
			request=request,
		)
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(StarletteHTTPException)
	async def handle_starlette_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		payload = error_response(
			code=f"http_{exc.status_code}",
			message=_exc_message(exc.detail),
			request=request,
		)
		return JSONResponse(status_code=exc.status_code, content=payload)

	@app.exception_handler(RequestValidationError)
	async def handle_request_validation_error(
		request: Request,
		exc: RequestValidationError,
	) -> JSONResponse:
		if request.url.path == "/chat":
			# Malformed chat bodies get the same fallback as missing fields.
			recorder = TraceRecorder(getattr(request.state, "trace_id", None))
			recorder.record("request_received", errors=len(exc.errors()))
			recorder.record("input_validation_failed", reason=constants.VALIDATION_FAILED_REASON)
			result = validation_failure_result(recorder.trace_id)
			return JSONResponse(status_code=400, content=result.as_dict())
		payload = error_response(
			code="validation_error",
			message="Request validation failed.",
			request=request,
		)
		return JSONResponse(status_code=422, content=payload)

	@app.exception_handler(Exception)
	async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
		logger.exception("Unhandled error on %s", request.url.path)
		payload = error_response(
			code="internal_error",
			message="Internal server error.",
			request=request,
		)
		return JSONResponse(status_code=500, content=payload)


def _exc_message(detail: Any) -> str:
	if isinstance(detail, str):
		return detail
	if detail is None:
		return "Request failed."
	return str(detail)


app = create_app()
