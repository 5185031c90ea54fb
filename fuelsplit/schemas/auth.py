from pydantic import BaseModel, Field


class CodeLogin(BaseModel):
    """Schema for access-code login"""
    code: str = Field(..., min_length=1, max_length=64)


class TokenResponse(BaseModel):
    """Schema for authentication token response"""
    access_token: str
    token_type: str = "bearer"
    participant: str
