"""
Privacy Pool API (FastAPI)

HTTP API for the shielded pool:
- GET /tree, GET /tree/leaves, GET /roots/{root} - Tree state
- POST /deposit - Insert a commitment
- GET /proof/{leaf_index}, POST /verify - Membership proofs
- GET /nullifiers/{nullifier_hash}, POST /settle - Withdrawals
- GET /health - Health check

Usage:
    uvicorn api.app:create_app --factory --reload
"""

__version__ = "0.1.0"
