"""Firebase identity: SDK initialization and ID token verification.

The frontend signs users in with Firebase and sends the resulting ID token
as a bearer token; the backend only verifies it.
"""

import json
from pathlib import Path

import firebase_admin
from firebase_admin import auth, credentials
from starlette.concurrency import run_in_threadpool
from structlog import get_logger

logger = get_logger(__name__)

_firebase_app: firebase_admin.App | None = None


def initialize_firebase(
    credentials_path: str | None = None,
    config_json: str | None = None,
) -> None:
    """
    Initialize the Firebase Admin SDK once per process.

    A raw service-account JSON string wins over a credentials file; with
    neither, Application Default Credentials are used.

    Raises:
        Exception: Whatever the SDK raises for unusable credentials
    """
    global _firebase_app

    if _firebase_app is not None:
        return

    if config_json:
        cred = credentials.Certificate(json.loads(config_json))
        source = "env_json"
    elif credentials_path and Path(credentials_path).is_file():
        cred = credentials.Certificate(credentials_path)
        source = "file"
    else:
        cred = None
        source = "application_default"

    _firebase_app = firebase_admin.initialize_app(cred)
    logger.info("firebase_initialized", source=source)


async def verify_firebase_token(id_token: str) -> dict:
    """
    Verify a Firebase ID token.

    The SDK call may fetch Google's public keys, so it runs in a worker thread.

    Args:
        id_token: ID token from the ``Authorization: Bearer`` header

    Returns:
        Decoded token claims (``uid``, ``email``, ``name``, ...)

    Raises:
        ValueError: If the token is invalid, expired or cannot be verified
    """
    try:
        decoded = await run_in_threadpool(auth.verify_id_token, id_token, clock_skew_seconds=10)
    except auth.InvalidIdTokenError as e:
        logger.warning("firebase_token_invalid", error=str(e))
        raise ValueError(f"Invalid Firebase ID token: {e!s}") from e
    except Exception as e:
        logger.error("firebase_token_verification_failed", error=str(e))
        raise ValueError(f"Token verification failed: {e!s}") from e

    logger.debug("firebase_token_verified", uid=decoded.get("uid"))
    return decoded
