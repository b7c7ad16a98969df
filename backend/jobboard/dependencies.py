import secrets

import httpx
from fastapi import Header, HTTPException

from jobboard.config import settings


async def require_service_key(authorization: str | None = Header(default=None)):
    if not settings.service_key:
        return None
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    token = authorization[7:]
    if not secrets.compare_digest(token, settings.service_key):
        raise HTTPException(status_code=401, detail="Invalid service key")
    return token


def get_http_client():
    with httpx.Client(timeout=settings.http_timeout_seconds) as client:
        yield client
