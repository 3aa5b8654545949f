"""
Access Token Models
-------------------
Pydantic model for decoded access token claims.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class AccessTokenClaims(BaseModel):
    """
    Decoded access token payload.

    Built only from a token whose signature and expiry were verified, so
    downstream handlers can trust it without touching storage.

    Security Note: permissions are a snapshot taken when the token was
    minted. They can lag behind role grants until the token expires.
    """

    user_id: int = Field(..., description="Identity id (wire claim 'userId')")
    role: str = Field(..., description="Role name, e.g. TEACHER")
    permissions: List[str] = Field(
        default_factory=list, description="Embedded permission names"
    )
    permissions_embedded: bool = Field(
        default=True,
        description="False when the token was minted without a permissions claim",
    )
    exp: datetime = Field(..., description="Token expiration timestamp")
    iat: Optional[datetime] = Field(default=None, description="Token issued at timestamp")
    type: str = Field(default="access", description="Token type")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": 7,
                "role": "TEACHER",
                "permissions": ["VIEW_STUDENT"],
                "permissions_embedded": True,
                "exp": "2026-10-13T10:45:00Z",
                "iat": "2026-10-13T10:30:00Z",
                "type": "access",
            }
        }
