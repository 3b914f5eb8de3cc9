"""
Request body normalization.

Bodies may arrive already parsed, as a JSON string, or as raw bytes on an
unread request stream. Unparsable input degrades to an empty mapping so
callers report "missing field" errors instead of failing outright.
"""
import json
import logging
from typing import Any, Dict, Mapping, Type, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_body(raw: Any) -> Dict[str, Any]:
    """Turn a mapping, JSON string or JSON bytes into a dict of fields."""
    if isinstance(raw, Mapping):
        return dict(raw)

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return {}

    if not isinstance(raw, str) or not raw.strip():
        return {}

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.debug("Request body is not valid JSON, treating as empty")
        return {}

    return parsed if isinstance(parsed, dict) else {}


async def read_request_body(request: Request) -> Dict[str, Any]:
    """Read the request stream and parse it with parse_body."""
    return parse_body(await request.body())


def load_payload(model: Type[ModelT], body: Dict[str, Any]) -> ModelT:
    """
    Validate a parsed body against an endpoint schema.

    Raises:
        HTTPException: 400 when the body has unknown or wrongly typed fields
    """
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.info(f"Rejected {model.__name__} body: {e.error_count()} validation error(s)")
        raise HTTPException(status_code=400, detail="Invalid request body")
