# src/api/routes/health_router.py
from fastapi import APIRouter, Depends
from dependency_injector.wiring import Provide, inject

from core.containers.app_containers import AppContainer

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/")
@inject
async def health_check(client=Depends(Provide[AppContainer.mongo_client])):
    try:
        await client.admin.command("ping")
        mongo_status = "connected"
    except Exception:
        mongo_status = "disconnected"

    return {
        "status": "ok",
        "mongo": mongo_status
    }
