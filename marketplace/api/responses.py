import json
import math
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def format_datetime(value: datetime) -> str:
    """UTC, millisecond precision, ``Z`` suffix: ``2026-03-01T09:30:00.123Z``."""
    if value.tzinfo is None:
        # pymongo hands back naive datetimes in UTC unless tz_aware is set
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _finite_or_null(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite_or_null(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_finite_or_null(v) for v in value]
    return value


class MongoJSONResponse(JSONResponse):
    """
    JSON response for raw MongoDB documents.

    ObjectIds render as hex strings and datetimes as UTC ISO 8601 with
    milliseconds. NaN and the infinities are not valid JSON, so they render
    as null.
    """

    def render(self, content: Any) -> bytes:
        encoded = jsonable_encoder(content, custom_encoder={ObjectId: str, datetime: format_datetime})
        return json.dumps(
            _finite_or_null(encoded),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")
