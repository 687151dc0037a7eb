"""
OpenAPI Drift Guard Validator

Builds the OpenAPI document from the FastAPI app and checks that the users
routes are still there, and that the PATCH body keeps `name` and `email`
as optional, nullable properties (omitted and null must both be accepted).

This script is intended to run in CI, but can be run locally too:
  python scripts/ci/validate_openapi.py
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

EXPECTED_OPENAPI_PREFIX = "3.1"

REQUIRED: dict[str, list[str]] = {
    "/health": ["get"],
    "/users": ["get", "post"],
    "/users/{user_id}": ["get", "patch", "delete"],
}

PATCH_FIELDS = ("name", "email")


def fail(msg: str, code: int = 1) -> None:
    print(msg)
    raise SystemExit(code)


def _allows_null(prop: Dict[str, Any]) -> bool:
    if prop.get("type") == "null":
        return True
    return any(_allows_null(p) for p in prop.get("anyOf", []) if isinstance(p, dict))


def main() -> None:
    from app.main import app

    data: Dict[str, Any] = app.openapi()

    # 1) Basic structure checks
    if not str(data.get("openapi", "")).startswith(EXPECTED_OPENAPI_PREFIX):
        fail(f"❌ ERROR: openapi version must start with {EXPECTED_OPENAPI_PREFIX}")

    paths = data.get("paths", {})
    if not isinstance(paths, dict):
        fail("❌ ERROR: 'paths' must be an object")

    # 2) Required paths + methods
    missing: list[str] = []

    for path, methods in REQUIRED.items():
        if path not in paths:
            missing.append(f"Missing path: {path}")
            continue

        for method in methods:
            if method not in paths[path]:
                missing.append(f"Missing method: {method.upper()} on {path}")

    # 3) PATCH body: every field optional and nullable
    schemas = data.get("components", {}).get("schemas", {})
    update_schema = schemas.get("UserUpdateRequest", {})
    props = update_schema.get("properties", {})

    for name in PATCH_FIELDS:
        if name not in props:
            missing.append(f"UserUpdateRequest missing property: {name}")
            continue
        if name in update_schema.get("required", []):
            missing.append(f"UserUpdateRequest.{name} must not be required")
        if not _allows_null(props[name]):
            missing.append(f"UserUpdateRequest.{name} must accept null")

    if missing:
        for m in missing:
            print("❌", m)
        fail("❌ ERROR: OpenAPI schema failed validation.")

    print("✅ OpenAPI schema is valid.")


if __name__ == "__main__":
    try:
        main()
    except SystemExit:
        raise
    except Exception as e:
        print(f"❌ ERROR: Unexpected failure: {e}")
        sys.exit(1)
