"""FastAPI application entrypoint for guidegen service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError
from ..errors import InvalidProposal, IOFailure, OutputUnwritable
from ..orchestrator import GenerateOutcome, Orchestrator

T = TypeVar("T")


class AnalyzeRequest(BaseModel):
    path: str


class SkippedFileModel(BaseModel):
    path: str
    reason: str


class AnalyzeResponse(BaseModel):
    root: str
    entities: int
    kinds: Dict[str, int]
    domains: Dict[str, int]
    skipped: List[SkippedFileModel]


class ScoreRequest(BaseModel):
    proposal_path: str
    repo: Optional[str] = None


class CandidateModel(BaseModel):
    id: str
    score: float


class RationaleModel(BaseModel):
    criterion: str
    label: str
    applies: bool
    contribution: int


class ScoreResponse(BaseModel):
    action: str
    score: int
    terminal: str
    polarity: Optional[str] = None
    requires_review: bool
    candidates: List[CandidateModel]
    rationale: List[RationaleModel]


class GenerateRequest(BaseModel):
    path: str
    out_dir: str


class GenerateResponse(BaseModel):
    documents: List[str]
    warnings: List[str]


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


async def _run_blocking(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing guidegen operations."""

    app = FastAPI(title="Guidegen Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> AnalyzeResponse:
        catalog = await _run_blocking(lambda: orchestrator.run_analyze(payload.path))
        summary = catalog.summary()
        return AnalyzeResponse(
            root=catalog.root,
            entities=len(catalog.entities),
            kinds=summary["kinds"],
            domains=summary["domains"],
            skipped=[
                SkippedFileModel(path=item.path, reason=item.reason) for item in catalog.skipped
            ],
        )

    @app.post("/score", response_model=ScoreResponse)
    async def score(
        payload: ScoreRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ScoreResponse:
        recommendation = await _run_blocking(
            lambda: orchestrator.run_score(payload.proposal_path, repo=payload.repo)
        )
        return ScoreResponse(**recommendation.to_dict())

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        outcome: GenerateOutcome = await _run_blocking(
            lambda: orchestrator.run_generate(payload.path, payload.out_dir)
        )
        return GenerateResponse(
            documents=[str(path) for path in outcome.written],
            warnings=[str(warning) for warning in outcome.tree.warnings],
        )

    @app.exception_handler(IOFailure)
    async def io_failure_handler(_: Any, exc: IOFailure) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(OutputUnwritable)
    async def output_unwritable_handler(_: Any, exc: OutputUnwritable) -> JSONResponse:
        return JSONResponse(status_code=507, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidProposal)
    async def invalid_proposal_handler(_: Any, exc: InvalidProposal) -> JSONResponse:
        return JSONResponse(
            status_code=422, content={"detail": str(exc), "problems": exc.problems}
        )

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
