import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.auth import require_operator
from app.config import Settings, get_settings
from app.demo.errors import DemoDataError, PermissionDenied, TeardownError
from app.demo.remove_demo_data import reset_demo_data
from app.demo.seed_demo_data import SeedOptions, seed_demo_data
from app.identity import FirebaseIdentityService, IdentityService, IdentitySession
from app.store import DocumentStore, FirestoreDocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/demo-data", tags=["demo-data"])


class SeedRequest(BaseModel):
    brand_manager_id: Optional[str] = None
    staff_ids: List[str] = []


def get_demo_settings() -> Settings:
    return get_settings()


@lru_cache
def get_store() -> DocumentStore:
    return FirestoreDocumentStore(project=get_settings().project_id)


def get_identity(
    operator_id: str = Depends(require_operator),
    settings: Settings = Depends(get_demo_settings),
) -> IdentityService:
    """The operator's identity context; demo accounts use an isolated copy."""
    return FirebaseIdentityService(
        settings.firebase_api_key,
        settings.auth_emulator_host,
        session=IdentitySession(user_id=operator_id),
    )


def _error_response(error: DemoDataError) -> JSONResponse:
    status_code = 403 if isinstance(error, PermissionDenied) else 502
    content = error.to_dict()
    if isinstance(error, TeardownError):
        content["deleted"] = error.deleted
    return JSONResponse(status_code=status_code, content=content)


@router.post("/seed")
async def seed(
    body: SeedRequest,
    operator_id: str = Depends(require_operator),
    store: DocumentStore = Depends(get_store),
    identity: IdentityService = Depends(get_identity),
    settings: Settings = Depends(get_demo_settings),
):
    """Seed the demo dataset and return per-entity counts."""
    options = SeedOptions(brand_manager_id=body.brand_manager_id, staff_ids=body.staff_ids)
    try:
        result = await seed_demo_data(
            operator_id, options, store=store, identity=identity, settings=settings
        )
    except DemoDataError as e:
        logger.error(f"Demo seed by {operator_id} failed: {e.code}: {e.message}")
        return _error_response(e)

    return {
        "counts": result.counts,
        "placeholders": [a.email for a in result.accounts if a.is_placeholder],
    }


@router.post("/reset")
async def reset(
    operator_id: str = Depends(require_operator),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_demo_settings),
):
    """Delete all demo-tagged documents."""
    try:
        result = await reset_demo_data(store=store, settings=settings, operator_id=operator_id)
    except DemoDataError as e:
        logger.error(f"Demo reset by {operator_id} failed: {e.code}: {e.message}")
        return _error_response(e)

    return {"deleted": result.deleted}
