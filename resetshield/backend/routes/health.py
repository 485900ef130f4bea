"""Liveness endpoint."""
from __future__ import annotations

from fastapi import APIRouter

from ..models.schemas import SystemHealth

router = APIRouter(tags=["health"])


@router.get("/health", response_model=SystemHealth)
async def health() -> SystemHealth:
    return SystemHealth(status="ok", message="Security Shield Active")
