from datetime import datetime, timedelta, timezone
from functools import lru_cache
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer
from fuelsplit.core.config import settings
from fuelsplit.core.participants import Participants

security = HTTPBearer()

@lru_cache
def get_participants() -> Participants:
    """Configured participant pair, validated once."""
    return settings.participants()

def create_access_token(participant: str, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": participant,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    encoded_jwt = jwt.encode(
        payload,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return encoded_jwt

async def get_current_participant(
    credentials = Depends(security),
    participants: Participants = Depends(get_participants)
) -> str:
    """Get the logged-in participant from the JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise credentials_exception

    participant = payload.get("sub")
    if participant is None or participant not in participants:
        raise credentials_exception

    return participant
