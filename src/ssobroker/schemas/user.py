"""End-user identity models."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AuthProvider(str, Enum):
    """Federated identity providers.

    A user whose ``auth_provider`` is None is a password-only account.
    """

    GOOGLE = "google"
    FACEBOOK = "facebook"


class User(BaseModel):
    """Stored user record.

    Email is the primary de-duplication key across providers and is kept
    lower-cased. ``(auth_provider, provider_user_id)`` identifies the user at
    its provider when no email is known.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    email: str | None = None
    password_hash: str | None = None
    auth_provider: AuthProvider | None = None
    provider_user_id: str | None = None
    profile_image_url: str | None = None
    client_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_profile(self) -> "UserProfile":
        return UserProfile(
            id=self.id,
            name=self.name,
            email=self.email,
            profile_image_url=self.profile_image_url,
            auth_provider=self.auth_provider,
            created_at=self.created_at,
        )


class UserProfile(BaseModel):
    """Public view of a user; never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str | None = None
    profile_image_url: str | None = None
    auth_provider: AuthProvider | None = None
    created_at: datetime
