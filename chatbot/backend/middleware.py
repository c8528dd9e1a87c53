from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chatbot.backend.conversation.trace import new_trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
	async def dispatch(self, request: Request, call_next) -> Response:
		# Always minted here; client supplied ids are never reused as trace ids.
		trace_id = new_trace_id()
		request.state.trace_id = trace_id
		start = time.perf_counter()
		response = await call_next(request)
		process_time = time.perf_counter() - start
		response.headers["X-Trace-ID"] = trace_id
		response.headers["X-Process-Time"] = f"{process_time:.6f}"
		return response
