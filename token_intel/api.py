"""HTTP API exposing the token analysis contract.

Routes:
    POST /api/token-intel   {"tokenAddress": ..., "chain": ...}
    GET  /api/token-intel?address=...&chain=...
    GET  /health
"""

import logging

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .aggregation.orchestrator import TokenIntelOrchestrator, build_orchestrator
from .core.config import APIConfig
from .core.exceptions import InvalidAddressError
from .core.types import Chain
from .output.response import NotFoundReport

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    token_address: str = Field(default="", alias="tokenAddress")
    chain: str | None = Field(default=None, alias="chain")
    chain_id: str | None = Field(default=None, alias="chainId")

    model_config = {"populate_by_name": True}


def chain_label(chain: str) -> str:
    """Display name of a chain, or the raw input when it is not a known chain."""
    try:
        return Chain.parse(chain).display_name
    except ValueError:
        return chain


def error_response(status_code: int, error: str, address: str, chain: str) -> JSONResponse:
    """Failure body; it still identifies the token that was asked for."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "contract": address, "chain": chain_label(chain)},
    )


def create_app(
    config: APIConfig | None = None,
    orchestrator: TokenIntelOrchestrator | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Configuration is validated here, at startup, so a missing key
    fails the process instead of a request.

    Args:
        config: API configuration (loaded from the environment if omitted)
        orchestrator: Pre-built orchestrator (tests inject fakes)

    Returns:
        FastAPI app

    Raises:
        ConfigurationError: if the configuration is unusable
    """
    if config is None:
        config = APIConfig.load()
    if orchestrator is None:
        orchestrator = build_orchestrator(config.validate())

    app = FastAPI(title="Token Intel API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.state.orchestrator = orchestrator
    app.state.default_chain = config.default_chain

    async def run_analysis(address: str, chain: str) -> JSONResponse:
        try:
            report = await app.state.orchestrator.analyze(address, chain)
        except InvalidAddressError as e:
            logger.info(f"Rejected address {e.address!r} for {e.chain}: {e.reason}")
            return error_response(400, f"Invalid token address: {e.reason}", address, chain)
        except Exception:
            logger.exception(f"Analysis failed for {address} on {chain}")
            return error_response(500, "Internal server error", address, chain)

        payload = report.to_payload()
        if isinstance(report, NotFoundReport):
            return JSONResponse(
                status_code=404,
                content={"success": False, "error": report.error, "data": payload},
            )
        return JSONResponse(status_code=200, content={"success": True, "data": payload})

    @app.post("/api/token-intel")
    async def analyze_token(request: AnalyzeRequest) -> JSONResponse:
        chain = request.chain or request.chain_id or app.state.default_chain
        return await run_analysis(request.token_address, chain)

    @app.get("/api/token-intel")
    async def analyze_token_query(
        address: str = Query(default=""),
        chain: str | None = Query(default=None),
    ) -> JSONResponse:
        return await run_analysis(address, chain or app.state.default_chain)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app
