"""
api/routes/contributions.py -- Contribution list endpoints.

Routes:
  POST /contribution  -- append one contribution for the token's user
  GET  /contribution  -- list the token's user's contributions, oldest first

Both require a bearer token. The username always comes from the verified
token claim, never from the request body, so a user can only touch their
own list.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import ContributionCreate, ContributionsResponse, MessageResponse
from auth.dependencies import get_auth_service, get_current_username
from auth.service import AuthService

router = APIRouter()


@router.post("/contribution", response_model=MessageResponse)
def add_contribution(
    body: ContributionCreate,
    username: str = Depends(get_current_username),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Append a contribution. Empty or missing contribution text is a 400."""
    service.add_contribution(username, body.contribution)
    return MessageResponse(message="Contribution added successfully")


@router.get("/contribution", response_model=ContributionsResponse)
def list_contributions(
    username: str = Depends(get_current_username),
    service: AuthService = Depends(get_auth_service),
) -> ContributionsResponse:
    return ContributionsResponse(contributions=service.list_contributions(username))
