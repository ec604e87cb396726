from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, Request, status
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from app.config import SECRET_KEY, SESSION_EXPIRE_MINUTES

# Session serializer
serializer = URLSafeTimedSerializer(SECRET_KEY)


def create_session_token(user_id: str) -> str:
    """Create a session token for an operator's Firebase UID."""
    data = {
        "user_id": user_id,
        "created": datetime.now(timezone.utc).isoformat()
    }
    return serializer.dumps(data)


def decode_session_token(token: str) -> Optional[dict]:
    """Decode and validate a session token."""
    try:
        data = serializer.loads(token, max_age=SESSION_EXPIRE_MINUTES * 60)
        return data
    except (BadSignature, SignatureExpired):
        return None


def get_session_user_id(request: Request) -> Optional[str]:
    """Get user ID from session cookie."""
    token = request.cookies.get("session")
    if not token:
        return None

    data = decode_session_token(token)
    if not data:
        return None

    return data.get("user_id")


def require_operator(request: Request) -> str:
    """Dependency returning the signed-in operator's UID, or 401."""
    user_id = get_session_user_id(request)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_id


def set_session_cookie(response, user_id: str):
    """Set session cookie on response."""
    token = create_session_token(user_id)
    response.set_cookie(
        key="session",
        value=token,
        httponly=True,
        max_age=SESSION_EXPIRE_MINUTES * 60,
        samesite="lax"
    )
    return response


def clear_session_cookie(response):
    """Clear session cookie on response."""
    response.delete_cookie("session")
    return response
