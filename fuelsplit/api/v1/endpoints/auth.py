import logging

from fastapi import APIRouter, Depends, HTTPException, status

from fuelsplit.core.auth import create_access_token, get_current_participant, get_participants
from fuelsplit.core.participants import Participants
from fuelsplit.schemas.auth import CodeLogin, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: CodeLogin,
    participants: Participants = Depends(get_participants)
):
    """Exchange a participant's access code for a session token"""
    participant = participants.resolve_code(credentials.code)
    if participant is None:
        logger.warning("Login attempt with an invalid code")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid code"
        )

    return TokenResponse(
        access_token=create_access_token(participant),
        token_type="bearer",
        participant=participant
    )


@router.get("/me")
async def get_me(current_participant: str = Depends(get_current_participant)):
    """Get the logged-in participant"""
    return {"participant": current_participant}
