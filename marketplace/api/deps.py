from fastapi import Request

from marketplace.database.mongo import MongoStore


def get_store(request: Request) -> MongoStore:
    return request.app.state.store


def get_products_collection(request: Request):
    # raises StoreNotReadyError until the store is connected
    return get_store(request).products
