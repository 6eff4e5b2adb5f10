"""Request body helpers for platform-originated calls.

The ticketing platform posts either urlencoded forms or JSON; ``metadata``
and ``state`` arrive as JSON-encoded strings inside that body.
"""
from __future__ import annotations
import json
from typing import Any, TypeVar
from fastapi import HTTPException, Request
from pydantic import ValidationError
from wabridge.domain.models import CredentialBundle, PlatformForm

F = TypeVar("F", bound=PlatformForm)

async def read_body(request: Request) -> dict[str, Any]:
    ctype = request.headers.get("content-type", "")
    if ctype.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid_json")
        return body if isinstance(body, dict) else {}
    form = await request.form()
    return {k: v for k, v in form.items()}

def metadata(body: dict[str, Any], required: bool = False) -> CredentialBundle:
    raw = body.get("metadata")
    if not raw:
        if required:
            raise HTTPException(status_code=400, detail="missing_metadata")
        return CredentialBundle()
    try:
        if isinstance(raw, dict):
            return CredentialBundle.model_validate(raw)
        return CredentialBundle.model_validate_json(raw)
    except ValidationError:
        raise HTTPException(status_code=400, detail="invalid_metadata")

def state(body: dict[str, Any]) -> dict[str, Any]:
    raw = body.get("state")
    if not raw:
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid_state")
    return parsed if isinstance(parsed, dict) else {}

def form(model: type[F], body: dict[str, Any]) -> F:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise HTTPException(status_code=400, detail={"error": "invalid_fields", "fields": fields})
