"""
FastAPI Application

HTTP surface of the reward ledger. The calling principal is taken from
the X-Caller header.

Usage:
    REWARDS_OWNER=0x... uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.errors import generic_error_handler, request_validation_handler, settlement_error_handler
from api.routes import admin, campaigns, claims, health
from core.schemas.errors import SettlementException
from ledger.service import RewardLedger


def _resolve_log_level() -> int:
    """Resolve log level from REWARDS_LOG_LEVEL, defaulting to INFO."""
    raw = os.getenv("REWARDS_LOG_LEVEL")
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(ledger: Optional[RewardLedger] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        ledger: Ledger to serve. If None, one is built from the runtime
            config on the first request.
    """
    app = FastAPI(
        title="Reward Ledger API",
        description="""
HTTP API for Merkle-committed campaign rewards.

## Endpoints

- **POST /campaigns** - Create a campaign and escrow its budget
- **POST /campaigns/{id}/close** - Deactivate a campaign (brand only)
- **POST /campaigns/{id}/results** - Commit the allocation root (oracle only)
- **POST /campaigns/{id}/claims** - Claim a reward with a Merkle proof
- **GET /campaigns/{id}**, **GET /campaigns/{id}/status** - Reads
- **GET /admin/roles**, **PUT /admin/oracle** - Owner and oracle roles
- **GET /health** - Health check

## Errors

`{"ok": false, "error": {"code", "message", "details"}}` with
403 unauthorized, 404 unknown campaign, 422 invalid input or proof,
409 invalid state, 402 transfer failure.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(SettlementException, settlement_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(campaigns.router)
    app.include_router(claims.router)
    app.include_router(admin.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
