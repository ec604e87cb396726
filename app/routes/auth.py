import logging

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from app.auth import clear_session_cookie, set_session_cookie
from app.config import Settings, get_settings
from app.identity import FirebaseIdentityService, IdentityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def get_login_identity(settings: Settings = Depends(get_settings)) -> IdentityService:
    return FirebaseIdentityService(settings.firebase_api_key, settings.auth_emulator_host)


@router.post("/login")
async def login(
    email: str = Form(...),
    password: str = Form(...),
    identity: IdentityService = Depends(get_login_identity),
):
    """Sign the operator in with Firebase and start a session."""
    result = await identity.sign_in(email, password)

    if not result.ok:
        logger.warning(f"Operator login failed for {email}: {result.code}")
        return JSONResponse(
            status_code=401,
            content={"code": result.code or "sign-in-failed", "message": "Invalid email or password"},
        )

    response = JSONResponse(content={"user_id": result.user_id})
    set_session_cookie(response, result.user_id)
    return response


@router.post("/logout")
async def logout():
    """Log out the current operator."""
    response = JSONResponse(content={"status": "ok"})
    clear_session_cookie(response)
    return response
