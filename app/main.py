from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.schemas import (
    USER_UPDATE_FIELDS,
    User,
    UserCreateRequest,
    UserUpdateRequest,
    strip_or_none,
)
from app.storage import (
    init_db,
    save_user,
    get_user,
    list_users,
    delete_user,
)
from app.update_fields import apply_patch_fields, patch_fields, provided_field_names

APP_VERSION = (Path("VERSION").read_text(encoding="utf-8").strip() if Path("VERSION").exists() else "0.0.0")

logger = logging.getLogger("patchfield")

app = FastAPI(
    title="PatchField Users API",
    version=APP_VERSION,
    description="Users resource with PATCH semantics that tell omitted fields from explicit nulls.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================
# Utilities
# =========================

def _log_event(event: str, **fields: Any) -> None:
    logger.info(json.dumps({"event": event, **fields}))


def _load_user_or_404(user_id: int, event: str) -> User:
    record = get_user(user_id)
    if not record:
        _log_event(event, user_id=user_id, reason="not_found")
        raise HTTPException(status_code=404, detail="User not found.")
    return User(**record)


def _empty_to_none(v: Optional[str]) -> Optional[str]:
    v = strip_or_none(v)
    return v or None


# =========================
# App init
# =========================

init_db()


# =========================
# Health
# =========================

@app.get("/health")
def health():
    return {"ok": True, "version": APP_VERSION}


# =========================
# User APIs
# =========================

@app.post("/users", response_model=User)
def create_user(body: UserCreateRequest):
    saved = save_user({"name": body.name, "email": body.email})
    _log_event("user_created", user_id=saved["id"])
    return User(**saved)


@app.get("/users")
def users_list(limit: int = 50):
    return {"items": [User(**u) for u in list_users(limit=int(limit))]}


@app.get("/users/{user_id}", response_model=User)
def get_user_by_id(user_id: int):
    return _load_user_or_404(user_id, "user_lookup_failed")


@app.patch("/users/{user_id}", response_model=User)
def update_user(user_id: int, body: UserUpdateRequest):
    user = _load_user_or_404(user_id, "user_update_rejected")

    fields = patch_fields(body, USER_UPDATE_FIELDS)

    # null (or a blank string) clears a field.
    fields["name"] = (
        fields["name"]
        .map(_empty_to_none)
        .if_provided_validate(lambda v: v is None or len(v) <= 120, HTTPException(status_code=400, detail="name is too long."))
    )

    fields["email"] = (
        fields["email"]
        .map(_empty_to_none)
        .if_provided_validate(
            lambda v: v is None or ("@" in v and len(v) <= 254),
            HTTPException(status_code=400, detail="email must be a valid address."),
        )
    )

    applied = apply_patch_fields(user, fields)
    saved = save_user(user.model_dump())

    _log_event(
        "user_updated",
        user_id=user_id,
        fields=applied,
        payload_keys=sorted(provided_field_names(body)),
    )
    return User(**saved)


@app.delete("/users/{user_id}")
def remove_user(user_id: int):
    if not delete_user(user_id):
        _log_event("user_delete_rejected", user_id=user_id, reason="not_found")
        raise HTTPException(status_code=404, detail="User not found.")
    _log_event("user_deleted", user_id=user_id)
    return {"ok": True}
