from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calcrm.core.db import MongoModel
from calcrm.utils import now


class UserRole(StrEnum):
    ADMIN = "Admin"
    EDITOR = "Editor"
    VIEWER = "Viewer"


class User(MongoModel):
    """User domain model with credentials."""

    name: str
    email: str  # Stored lower-cased, unique
    password_hash: str  # bcrypt hash
    designation: str = ""
    role: UserRole = UserRole.VIEWER
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserView(BaseModel):
    """User account information (API representation, never includes the password hash)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID = Field(..., description="User ID")
    name: str
    email: str
    designation: str
    role: UserRole
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            designation=user.designation,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserSummary(BaseModel):
    """Creator fields inlined into listed records."""

    id: UUID = Field(alias="_id", serialization_alias="id")
    name: str
    email: str

    model_config = ConfigDict(populate_by_name=True)
