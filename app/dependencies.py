"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.firebase import verify_firebase_token
from app.core.redis_client import CacheManager, get_redis_client
from app.core.storage import MediaStorage
from app.database import get_db

# Security; a missing header is allowed and resolves to an anonymous caller
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """
    Resolve the signed-in user from a Firebase ID token.

    Args:
        credentials: Optional bearer token credentials

    Returns:
        ``{"uid", "email", "name"}`` of the caller, or None when anonymous

    Raises:
        HTTPException: If the token is invalid, or missing while auth is required
    """
    if credentials is None:
        if settings.auth_required:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return None

    try:
        decoded = await verify_firebase_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "uid": decoded.get("uid"),
        "email": decoded.get("email"),
        "name": decoded.get("name"),
    }


def get_cache_manager() -> CacheManager | None:
    """Get cache manager, or None when Redis is not configured."""
    client = get_redis_client()
    if client is None:
        return None
    return CacheManager(client)


def get_media_storage() -> MediaStorage:
    """Get media storage configured from settings."""
    return MediaStorage(
        root=settings.media_root,
        url_prefix=settings.media_url_prefix,
        max_bytes=settings.media_max_bytes,
    )


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentIdentity = Annotated[dict | None, Depends(get_current_identity)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
MediaStorageDep = Annotated[MediaStorage, Depends(get_media_storage)]
