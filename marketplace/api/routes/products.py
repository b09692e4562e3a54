import json
import logging

from fastapi import APIRouter, Depends, Request

from marketplace.api.deps import get_products_collection
from marketplace.api.responses import MongoJSONResponse
from marketplace.services.product_service import create_listing, list_listings

logger = logging.getLogger(__name__)

router = APIRouter()


class InvalidJSONBody(ValueError):
    pass


async def read_json_object(request: Request) -> dict:
    """
    Body of a JSON request as a dict.

    Requests that are not JSON, have no body, or carry a JSON value other
    than an object read as ``{}``.
    """
    content_type = request.headers.get("content-type", "")
    if "json" not in content_type.lower():
        return {}

    body = await request.body()
    if not body.strip():
        return {}

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise InvalidJSONBody(str(e)) from e
    return payload if isinstance(payload, dict) else {}


@router.post("")
async def add_product(request: Request, collection=Depends(get_products_collection)):
    try:
        payload = await read_json_object(request)
    except InvalidJSONBody as e:
        logger.warning("Rejected malformed JSON body: %s", e)
        return MongoJSONResponse({"message": "Invalid JSON body", "error": str(e)}, status_code=400)

    try:
        inserted_id, product = await create_listing(collection, payload)
    except Exception as e:
        logger.exception("Error adding product: %s", e)
        return MongoJSONResponse({"message": "Error adding product", "error": str(e)}, status_code=400)

    return MongoJSONResponse(
        {
            "message": "Product added successfully",
            "insertedId": inserted_id,
            "product": product,
        },
        status_code=201,
    )


@router.get("")
async def get_products(collection=Depends(get_products_collection)):
    try:
        products = await list_listings(collection)
    except Exception as e:
        logger.exception("Error fetching products: %s", e)
        return MongoJSONResponse({"message": "Error fetching products", "error": str(e)}, status_code=500)

    return MongoJSONResponse(products, status_code=200)
