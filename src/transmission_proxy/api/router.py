"""API router.

The RPC, login and callback routes live under the configured mount path;
the health probe stays at the root.
"""

from __future__ import annotations

from fastapi import APIRouter

from transmission_proxy.api.endpoints import auth, health, rpc


def build_router(mount_path: str) -> APIRouter:
    """Assemble every route for a given mount path."""
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(rpc.router, prefix=mount_path)
    router.include_router(auth.router, prefix=mount_path)
    return router
