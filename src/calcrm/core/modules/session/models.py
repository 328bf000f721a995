"""Bearer token models."""

from datetime import datetime
from typing import NewType
from uuid import UUID

from pydantic import BaseModel, Field

from calcrm.core.modules.user.models import UserView

AuthToken = NewType("AuthToken", str)


class TokenClaims(BaseModel):
    """Claims carried by a signed access token."""

    user_id: UUID = Field(..., alias="userId")
    email: str
    exp: datetime

    model_config = {"populate_by_name": True}


class AuthResult(BaseModel):
    """Signed-in user and the token to send on subsequent requests."""

    user: UserView
    token: str
