"""User (identity) and UserAuth (credential) models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: f"usr_{secrets.token_hex(6)}", primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserAuth(SQLModel, table=True):
    __tablename__ = "user_auth"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    password_hash: str
    refresh_token_hash: Optional[str] = None  # fingerprint of the one outstanding refresh token
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
