from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from chatbot.backend.conversation import ConversationOrchestrator
from chatbot.backend.response import turn_status_code
from chatbot.backend.schemas import ApiErrorEnvelope, ChatRequest, ChatResponse


router = APIRouter(tags=["chat"])


def _orchestrator(request: Request) -> ConversationOrchestrator:
	return request.app.state.orchestrator


@router.post(
	"/chat",
	response_model=ChatResponse,
	response_model_exclude_none=True,
	responses={
		400: {"model": ChatResponse, "description": "Missing userId or message."},
		500: {"model": ApiErrorEnvelope, "description": "Unhandled server error."},
	},
)
async def chat(request: Request, payload: ChatRequest):
	orchestrator = _orchestrator(request)
	trace_id = getattr(request.state, "trace_id", None)
	if orchestrator.accepts(payload.userId, payload.message):
		# Same-user turns queue on the event loop so waiting never occupies a worker thread.
		async with orchestrator.store.turn_scope(payload.userId):
			result = await run_in_threadpool(
				orchestrator.handle_turn,
				payload.userId,
				payload.message,
				trace_id,
			)
	else:
		result = orchestrator.handle_turn(payload.userId, payload.message, trace_id)

	status_code = turn_status_code(result)
	if status_code != 200:
		return JSONResponse(status_code=status_code, content=result.as_dict())
	return result.as_dict()
