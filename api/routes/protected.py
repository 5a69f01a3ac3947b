"""
api/routes/protected.py -- Example bearer-protected pages.

GET /profile and GET /administration only prove the token check works: they
greet the username carried in the token and touch no storage.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MessageResponse
from auth.dependencies import get_current_username

router = APIRouter()


@router.get("/profile", response_model=MessageResponse)
async def profile(username: str = Depends(get_current_username)) -> MessageResponse:
    return MessageResponse(message=f"Profile details for {username}")


@router.get("/administration", response_model=MessageResponse)
async def administration(username: str = Depends(get_current_username)) -> MessageResponse:
    return MessageResponse(message=f"Welcome to Administration, {username}")
