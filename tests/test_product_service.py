import asyncio
import math
from datetime import timezone

import pytest

from marketplace.services.product_service import build_listing, create_listing, parse_price


@pytest.mark.parametrize(
    "value, expected",
    [
        ("3.50", 3.5),
        (" 12 USD", 12.0),
        ("-4e2x", -400.0),
        (".5", 0.5),
        ("7.", 7.0),
        ("1e", 1.0),
        (19, 19.0),
        (2.25, 2.25),
        ("Infinity", math.inf),
        ("-Infinity", -math.inf),
        (10 ** 400, math.inf),
        (-(10 ** 400), -math.inf),
    ],
)
def test_parse_price(value, expected):
    assert parse_price(value) == expected


@pytest.mark.parametrize("value", ["abc", "", ".", "USD 12", None, True, {"amount": 3}, [3]])
def test_parse_price_not_a_number(value):
    assert math.isnan(parse_price(value))


def test_build_listing():
    listing = build_listing({
        "productName": "Honey",
        "productDescription": "Raw, 500g",
        "productPrice": "8",
        "contactInfo": "+1 555 0100",
        "createdAt": "1999-01-01",
    })

    assert listing["productName"] == "Honey"
    assert listing["productPrice"] == 8.0
    assert listing["createdAt"].tzinfo is timezone.utc
    assert listing["createdAt"].microsecond % 1000 == 0
    assert set(listing) == {"productName", "productDescription", "productPrice", "contactInfo", "createdAt"}


def test_create_listing_returns_inserted_id(products):
    inserted_id, listing = asyncio.run(create_listing(products, {"productName": "Honey"}))

    assert listing["_id"] == inserted_id
    assert products.docs[0]["_id"] == inserted_id
