from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.patch_field import PatchField

USER_UPDATE_FIELDS = ("name", "email")


def strip_or_none(v):
    if v is None:
        return None
    if isinstance(v, str):
        return v.strip()
    return v


class User(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None


class UserCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: Optional[str] = Field(None, max_length=254)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip(cls, v):
        return strip_or_none(v)

    @field_validator("email")
    @classmethod
    def email_has_at(cls, v):
        if v is not None and "@" not in v:
            raise ValueError("email must be a valid address")
        return v


class UserUpdateRequest(BaseModel):
    # Defaults must stay not_provided(): an omitted key never reaches validation.
    name: PatchField[Optional[str]] = PatchField.not_provided()
    email: PatchField[Optional[str]] = PatchField.not_provided()
