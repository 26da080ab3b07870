"""Firebase Admin SDK initialization."""

import os
from functools import lru_cache

import firebase_admin
from firebase_admin import auth, credentials
from loguru import logger

import config


@lru_cache(maxsize=1)
def initialize_firebase() -> firebase_admin.App:
    """Initialize the Firebase Admin SDK once per process.

    Raises:
        ValueError: If FIREBASE_PROJECT_ID is not configured
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # Not initialized yet

    project_id = config.FIREBASE_PROJECT_ID
    service_account_path = config.FIREBASE_SERVICE_ACCOUNT_KEY_PATH

    if not project_id:
        raise ValueError("FIREBASE_PROJECT_ID environment variable is required")

    if service_account_path and os.path.exists(service_account_path):
        logger.bind(project_id=project_id).info(
            "Initializing Firebase with service account"
        )
        cred = credentials.Certificate(service_account_path)
        return firebase_admin.initialize_app(cred)

    # Application Default Credentials (local development and the emulator)
    logger.bind(project_id=project_id).info(
        "Initializing Firebase with application default credentials"
    )
    cred = credentials.ApplicationDefault()
    return firebase_admin.initialize_app(cred, {"projectId": project_id})


def get_firebase_auth() -> auth:
    """Return the firebase_admin.auth module, initializing the SDK first."""
    initialize_firebase()
    return auth
