from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from marketplace.api.deps import get_store
from marketplace.database.mongo import MongoStore

router = APIRouter()

@router.get("")
def health_check(store: MongoStore = Depends(get_store)):
    if not store.is_ready:
        return JSONResponse({"status": "unavailable", "database": "disconnected"}, status_code=503)
    return {"status": "healthy", "database": "connected"}
