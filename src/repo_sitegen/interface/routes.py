"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from repo_sitegen.infrastructure.config import Settings
from repo_sitegen.interface.dependencies import (
    ProviderLookup,
    build_use_case,
    get_provider_lookup,
    resolve_request_config,
    settings_dependency,
)
from repo_sitegen.interface.schemas import ErrorResponse, GenerateRequest, GenerateResponse

router = APIRouter()


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={
        422: {"model": ErrorResponse, "description": "Invalid request body or site configuration"},
        500: {"model": ErrorResponse, "description": "Unexpected pipeline error"},
        502: {
            "model": ErrorResponse,
            "description": "A generation stage failed (LLM provider or unusable response)",
        },
    },
)
async def generate(
    body: GenerateRequest,
    settings: Settings = Depends(settings_dependency),
    provider_lookup: ProviderLookup = Depends(get_provider_lookup),
) -> GenerateResponse:
    """Generate a static site for the given repository facts."""
    config = resolve_request_config(body.config, settings)
    provider = provider_lookup(config.ai.provider, config.ai.quality)
    use_case = build_use_case(provider, settings)
    site = await use_case.execute(body.repository.to_entity(), config)
    return GenerateResponse.from_entity(site)
