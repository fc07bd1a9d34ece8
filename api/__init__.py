"""
Reward Ledger API (FastAPI)

HTTP API over the reward ledger:
- POST /campaigns - Create and escrow
- POST /campaigns/{id}/results - Oracle commitment
- POST /campaigns/{id}/claims - Claim with proof
- GET /health - Health check

Usage:
    uvicorn api.app:app --reload
"""

__version__ = "0.1.0"
