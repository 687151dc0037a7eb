#!/usr/bin/env python3
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, Optional, Tuple
from urllib.error import HTTPError
from urllib.request import Request, urlopen

try:
    import requests  # type: ignore
except Exception:  # pragma: no cover
    requests = None


def base_url() -> str:
    return os.getenv("SMOKE_BASE_URL", "http://127.0.0.1:8000").rstrip("/")


def _req_requests(method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
    assert requests is not None
    url = base_url() + path
    res = requests.request(method, url, json=payload, timeout=20)
    try:
        data = res.json()
    except Exception:
        data = res.text
    return res.status_code, data


def _req_urllib(method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
    url = base_url() + path
    body = None
    headers: Dict[str, str] = {}
    if payload is not None:
        body = json.dumps(payload).encode("utf-8")
        headers["Content-Type"] = "application/json"

    req = Request(url=url, method=method, data=body, headers=headers)
    try:
        with urlopen(req, timeout=20) as resp:
            raw = resp.read().decode("utf-8")
            try:
                return int(resp.status), json.loads(raw)
            except Exception:
                return int(resp.status), raw
    except HTTPError as err:
        raw = err.read().decode("utf-8") if err.fp else ""
        try:
            parsed = json.loads(raw)
        except Exception:
            parsed = raw
        return int(err.code), parsed


def api(method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
    if requests is not None:
        return _req_requests(method, path, payload)
    return _req_urllib(method, path, payload)


def require(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def create_user(name: str, email: Optional[str]) -> Dict[str, Any]:
    status, user = api("POST", "/users", payload={"name": name, "email": email})
    require(status == 200, f"POST /users expected 200, got {status} ({user})")
    require(isinstance(user, dict) and user.get("id") is not None, "POST /users expected an id")
    return user


def main() -> int:
    print(f"Smoke test target: {base_url()}")

    status, health = api("GET", "/health")
    require(status == 200, f"GET /health expected 200, got {status}")
    require(isinstance(health, dict) and health.get("ok") is True, "GET /health expected {'ok': true}")
    print("[ok] /health")

    created_ids = []

    created = create_user("John Doe", "johndoe@example.com")
    require(created["name"] == "John Doe", f"create: unexpected name {created}")
    require(created["email"] == "johndoe@example.com", f"create: unexpected email {created}")
    print(f"[ok] POST /users -> {created['id']}")

    user = create_user("Original Name", "original@example.com")
    created_ids.append(user["id"])
    status, patched = api("PATCH", f"/users/{user['id']}", payload={"name": "Updated Name"})
    require(status == 200, f"PATCH name expected 200, got {status} ({patched})")
    require(patched["name"] == "Updated Name", f"PATCH name: unexpected name {patched}")
    require(patched["email"] == "original@example.com", f"PATCH name: email should be unchanged, got {patched}")
    print("[ok] PATCH /users/{id} omitted email left unchanged")

    user = create_user("Original Name", "original@example.com")
    created_ids.append(user["id"])
    status, patched = api("PATCH", f"/users/{user['id']}", payload={"email": None})
    require(status == 200, f"PATCH email=null expected 200, got {status} ({patched})")
    require(patched["name"] == "Original Name", f"PATCH email=null: name should be unchanged, got {patched}")
    require(patched["email"] is None, f"PATCH email=null: email should be cleared, got {patched}")
    print("[ok] PATCH /users/{id} explicit null cleared email")

    status, missing = api("PATCH", "/users/999999999", payload={"name": "Nobody"})
    require(status == 404, f"PATCH unknown user expected 404, got {status} ({missing})")
    print("[ok] PATCH unknown user -> 404")

    created_ids.append(created["id"])
    for user_id in created_ids:
        api("DELETE", f"/users/{user_id}")

    print("Smoke test passed.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except AssertionError as exc:
        print(f"Smoke test failed: {exc}", file=sys.stderr)
        raise SystemExit(1)
