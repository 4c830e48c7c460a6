"""
Credential discovery and Google API client construction.
"""

import base64
import json
import logging
import os
from typing import Any, Tuple

import google.auth
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .config import SCOPES, Settings

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """No credential source produced usable credentials."""


def _oauth_credentials(settings: Settings):
    creds = None
    if os.path.exists(settings.token_path):
        with open(settings.token_path, 'r') as token:
            creds = Credentials.from_authorized_user_info(json.load(token), SCOPES)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            logger.info("Attempting to refresh expired token...")
            creds.refresh(Request())
            with open(settings.token_path, 'w') as token:
                token.write(creds.to_json())
            logger.info("Token refreshed successfully")
            return creds
        except Exception as refresh_error:
            logger.warning("Token refresh failed: %s", refresh_error)

    try:
        flow = InstalledAppFlow.from_client_secrets_file(settings.credentials_path, SCOPES)
        creds = flow.run_local_server(port=0)
        with open(settings.token_path, 'w') as token:
            token.write(creds.to_json())
        logger.info("Successfully authenticated using OAuth flow")
        return creds
    except Exception as e:
        logger.warning("Error with OAuth flow: %s", e)
        return None


def get_credentials(settings: Settings):
    """
    Find credentials, trying in order:
    base64 service account config, service account file, OAuth token/flow,
    Application Default Credentials.

    Raises:
        AuthenticationError: if every method fails
    """
    if settings.credentials_config:
        info = json.loads(base64.b64decode(settings.credentials_config))
        logger.info("Using service account from CREDENTIALS_CONFIG")
        return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)

    if settings.service_account_path and os.path.exists(settings.service_account_path):
        try:
            creds = service_account.Credentials.from_service_account_file(
                settings.service_account_path,
                scopes=SCOPES
            )
            logger.info("Using service account authentication")
            return creds
        except Exception as e:
            logger.warning("Error using service account authentication: %s", e)

    logger.info("Trying OAuth authentication flow")
    creds = _oauth_credentials(settings)
    if creds:
        return creds

    # ADC checks GOOGLE_APPLICATION_CREDENTIALS, gcloud auth, and the metadata service
    try:
        creds, project = google.auth.default(scopes=SCOPES)
        logger.info("Successfully authenticated using ADC for project: %s", project)
        return creds
    except Exception as e:
        raise AuthenticationError(
            "All authentication methods failed. Please configure credentials."
        ) from e


def build_services(settings: Settings) -> Tuple[Any, Any]:
    """Return (sheets_service, drive_service) built from discovered credentials."""
    creds = get_credentials(settings)
    sheets_service = build('sheets', 'v4', credentials=creds)
    drive_service = build('drive', 'v3', credentials=creds)
    return sheets_service, drive_service
