from __future__ import annotations

from fastapi import APIRouter, Request

from chatbot.backend.schemas import HealthData


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthData)
def health(request: Request):
	state = request.app.state
	return {
		"ok": True,
		"provider_mode": state.provider_mode,
		"model": state.orchestrator.gateway.model,
		"sessions": len(state.orchestrator.store),
	}
