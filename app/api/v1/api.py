"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, logs, messages, profile, records, users

api_router = APIRouter()

# Login, logout, forced password change
api_router.include_router(auth.router)

# Own profile and password
api_router.include_router(profile.router)

# Account management, audit logs
api_router.include_router(users.router)
api_router.include_router(logs.router)

# Shift records and direct messages
api_router.include_router(records.router)
api_router.include_router(messages.router)
