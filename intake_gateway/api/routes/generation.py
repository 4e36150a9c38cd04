from __future__ import annotations

from fastapi import APIRouter, Depends

from intake_gateway.core.bootstrap import GatewayServices, get_services
from intake_gateway.schemas.generation import GenerateRequest, GenerateResponse

router = APIRouter(tags=["Generation"])


@router.post("/generate", response_model=GenerateResponse)
async def generate_text(
    payload: GenerateRequest,
    services: GatewayServices = Depends(get_services),
) -> GenerateResponse:
    """Forward a chat prompt to the configured LLM and return its text.

    Raises:
        ValidationAppError: 400 for a blank or oversized prompt.
        LLMAppError: 500 if no provider is configured or the call fails.
    """
    text = await services.generation.complete(payload.prompt)
    return GenerateResponse(text=text)
