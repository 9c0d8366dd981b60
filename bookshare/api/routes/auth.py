"""Session cookie routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from bookshare.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/session")
async def create_session(request: Request, response: Response) -> dict[str, bool]:
    """Store the identity token in an HTTP-only session cookie."""
    try:
        body = await request.json()
        token = body["token"]
    except (ValueError, KeyError, TypeError) as exc:
        logger.error("Session error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to set session",
        ) from exc

    response.set_cookie(
        key=settings.session_cookie_name,
        value=str(token),
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return {"success": True}


@router.delete("/session")
async def delete_session(response: Response) -> dict[str, bool]:
    """Clear the session cookie."""
    try:
        response.delete_cookie(key=settings.session_cookie_name, path="/")
    except (KeyError, ValueError) as exc:
        logger.error("Session deletion error: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete session",
        ) from exc
    return {"success": True}
