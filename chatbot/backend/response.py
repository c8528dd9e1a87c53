from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request

from chatbot.backend.conversation.types import TurnResult


def now_iso() -> str:
	return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _trace_id(request: Optional[Request]) -> Optional[str]:
	if request is None:
		return None
	return getattr(request.state, "trace_id", None)


def turn_status_code(result: TurnResult) -> int:
	return 400 if result.status == "invalid" else 200


def error_response(
	*,
	code: str,
	message: str,
	request: Optional[Request] = None,
) -> Dict[str, Any]:
	payload: Dict[str, Any] = {
		"ok": False,
		"generated_at": now_iso(),
		"error": {
			"code": code,
			"message": message,
		},
	}
	trace_id = _trace_id(request)
	if trace_id:
		payload["trace_id"] = trace_id
	return payload
