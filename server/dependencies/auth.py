"""Request dependencies identifying the caller of the explorer API."""

import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str = Header(...)) -> None:
    """Rejects requests whose ``X-Api-Key`` header differs from ``API_SERVER_API_KEY`` with 401."""
    expected_key = request.app.state.helper_config.get_string_val("API_SERVER_API_KEY")
    if not secrets.compare_digest(x_api_key.encode(), expected_key.encode()):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


async def get_user_name(x_user_name: str | None = Header(default=None)) -> str | None:
    """Display name of the caller for the custody certificate, None when not sent."""
    if x_user_name is None or not x_user_name.strip():
        return None
    return x_user_name.strip()
