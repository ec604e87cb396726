"""
Permission checks run before any demo data is written or removed.

The operator's role alone does not prove the security rules will accept
the writes, so both checks end with a real write and delete of a scratch
document.
"""
import logging
from typing import Optional

from app.config import Settings
from app.demo.errors import PermissionDenied, diagnostic_code, diagnostic_message
from app.store import DocumentStore
from app.utils.dates import utc_now

logger = logging.getLogger(__name__)


async def _scratch_write_and_delete(store: DocumentStore, settings: Settings, operator_id: Optional[str]):
    collection = settings.permission_collection
    try:
        key = await store.add(collection, {
            "message": "Permission test for demo data",
            "createdBy": operator_id,
            "createdAt": utc_now(),
            "isTest": True,
        })
    except Exception as e:
        logger.error(f"Scratch write to {collection} failed: {e}")
        raise PermissionDenied(diagnostic_code(e), f"Write test failed: {diagnostic_message(e)}") from e

    try:
        await store.delete(collection, key)
    except Exception as e:
        logger.error(f"Scratch delete of {collection}/{key} failed: {e}")
        raise PermissionDenied(diagnostic_code(e), f"Delete test failed: {diagnostic_message(e)}") from e


async def _check_role(store: DocumentStore, operator_id: str, settings: Settings):
    try:
        profile = await store.get("users", operator_id)
    except Exception as e:
        raise PermissionDenied(
            diagnostic_code(e), f"Could not read operator profile: {diagnostic_message(e)}"
        ) from e

    if profile is None:
        raise PermissionDenied("not-found", f"User document not found for UID: {operator_id}")

    role = profile.get("role")
    if role != settings.admin_role:
        raise PermissionDenied(
            "insufficient-role",
            f"User does not have {settings.admin_role} role. Current role: {role}",
        )


async def check_seed_permissions(store: DocumentStore, operator_id: str, settings: Settings):
    """Confirm the operator holds the admin role and can write and delete."""
    logger.info(f"Checking demo seed permissions for {operator_id}")
    await _check_role(store, operator_id, settings)
    await _scratch_write_and_delete(store, settings, operator_id)
    logger.info("Seed permission checks passed")


async def check_delete_permissions(store: DocumentStore, settings: Settings, operator_id: Optional[str] = None):
    """Confirm the caller can write and delete, ahead of a teardown.

    The role check only runs when an operator is known; the command-line
    reset relies on the credentials the store client was built with.
    """
    if operator_id is not None:
        await _check_role(store, operator_id, settings)
    await _scratch_write_and_delete(store, settings, operator_id)
    logger.info("Delete permission checks passed")
