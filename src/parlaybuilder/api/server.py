"""FastAPI backend for the parlay builder."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from parlaybuilder import __version__
from parlaybuilder.api.schemas import GenerateParlayRequest, GenerateParlayResponse, HealthResponse
from parlaybuilder.config import configured_providers
from parlaybuilder.errors import GenerationError, UpstreamUnavailable
from parlaybuilder.pipeline.coordinator import Coordinator, build_default_coordinator

app = FastAPI(
    title="Parlay Builder API",
    version=__version__,
    description="Generates researched multi-leg parlays from live odds.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_coordinator() -> Coordinator:
    return build_default_coordinator()


CoordinatorDep = Annotated[Coordinator, Depends(get_coordinator)]


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, providers=configured_providers())


@app.post("/generate_parlay", response_model=GenerateParlayResponse, response_model_by_alias=True)
def generate_parlay(payload: GenerateParlayRequest, coordinator: CoordinatorDep) -> GenerateParlayResponse:
    try:
        result = coordinator.generate(payload.to_request())
    except UpstreamUnavailable as exc:
        raise HTTPException(status_code=502, detail=f"Odds unavailable: {exc}") from exc
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail=f"Generation failed: {exc}") from exc
    return GenerateParlayResponse.from_result(result)
