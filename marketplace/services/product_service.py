import logging
import math
import re
from datetime import datetime, timezone

from pymongo import DESCENDING

logger = logging.getLogger(__name__)

LISTING_FIELDS = ("productName", "productDescription", "productPrice", "contactInfo")

# newest first; _id breaks ties between listings stamped in the same millisecond
NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]

_NUMERIC_PREFIX_RE = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_price(value) -> float:
    """
    Coerce a submitted price to a float the lenient way browsers do.

    Text keeps its longest leading decimal literal ("3.50" -> 3.5,
    "12 USD" -> 12.0); anything without one becomes NaN instead of being
    rejected.
    """
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    if not isinstance(value, str):
        return math.nan

    match = _NUMERIC_PREFIX_RE.match(value.lstrip())
    if not match:
        return math.nan
    text = match.group(0)
    if text.endswith("Infinity"):
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def utc_now() -> datetime:
    # MongoDB stores dates with millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond - now.microsecond % 1000)


def build_listing(payload: dict) -> dict:
    listing = {}
    for field in LISTING_FIELDS:
        if field in payload:
            listing[field] = payload[field]
    listing["productPrice"] = parse_price(payload.get("productPrice"))
    listing["createdAt"] = utc_now()
    return listing


async def create_listing(collection, payload: dict) -> tuple[object, dict]:
    """Insert one listing. Returns the store-assigned id and the stored record."""
    listing = build_listing(payload)
    result = await collection.insert_one(listing)
    logger.info("Inserted product %s", result.inserted_id)
    return result.inserted_id, listing


async def list_listings(collection) -> list[dict]:
    cursor = collection.find({}).sort(NEWEST_FIRST)
    return await cursor.to_list(None)
