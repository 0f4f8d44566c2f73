"""
Firebase Firestore initialization.
Single-source-of-truth Firestore client backing the report history store.
"""

from typing import Optional
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore, initialize_app

from app.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None


def _validate_credentials_file(cred_path: str) -> None:
    if not os.path.exists(cred_path):
        raise FileNotFoundError(
            f"Firebase credentials file not found: {cred_path}\n"
            f"Check FIREBASE_CREDENTIALS_PATH in your .env file.\n"
            f"Current working directory: {os.getcwd()}"
        )

    try:
        with open(cred_path, "r") as f:
            cred_data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Firebase credentials file is not valid JSON: {e}")

    required_fields = ["type", "project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if field not in cred_data]
    if missing_fields:
        raise ValueError(f"Firebase credentials file is missing required fields: {missing_fields}")

    logger.info(f"[FIRESTORE] Credentials file validated: {cred_path}")


def initialize_firestore() -> firestore.Client:
    global db

    if db is not None:
        return db

    try:
        if not firebase_admin._apps:
            if settings.FIREBASE_CREDENTIALS_PATH:
                _validate_credentials_file(settings.FIREBASE_CREDENTIALS_PATH)
                initialize_app(credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH))
                logger.info("[FIRESTORE] Firebase Admin SDK initialized with service account")
            else:
                logger.info("[FIRESTORE] No credentials path set, using Application Default Credentials")
                initialize_app()

        db = firestore.client()
        logger.info(f"[FIRESTORE] Project: {settings.FIREBASE_PROJECT_ID or 'default'}")
        return db

    except (FileNotFoundError, ValueError) as e:
        raise RuntimeError(
            f"Firestore initialization FAILED - invalid credentials.\n{str(e)}\n"
            f"SOLUTION: point FIREBASE_CREDENTIALS_PATH at a valid service account JSON file "
            f"or set USE_MOCK_DB=true for local development."
        )
    except Exception as e:
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {str(e)}\n"
            f"Please check your Firebase credentials and configuration."
        )


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore has not been initialized and cannot be.
    """
    if db is None:
        try:
            initialize_firestore()
        except Exception as e:
            raise RuntimeError(
                f"Firestore not initialized and initialization failed: {e}. "
                "Please check your Firebase credentials and configuration."
            )
    return db
