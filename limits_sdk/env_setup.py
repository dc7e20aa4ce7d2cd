"""Environment configuration setup utilities.

This module provides functions for loading environment variables from .env files
and configuring the SDK for local development.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from limits_sdk.errors import ValidationError
from limits_sdk.helpers import DEFAULT_API_URL, DEFAULT_CHAIN_ID, DEFAULT_PERMIT_API_URL

log = logging.getLogger(__name__)


def setup_environment() -> tuple[str, str, str | None, int]:
    """Load and return environment variables for Limits API configuration.

    Loads environment variables from a .env file if present, otherwise falls
    back to system environment variables. Reads environment-specific variables
    based on the ENVIRONMENT variable (defaults to 'production').

    Returns:
        Tuple:
            - api_url: The trading backend URL
            - permit_api_url: The permit signing service URL
            - private_key: The private key for signing, if configured
            - chain_id: The chain id to sign for

    Raises:
        ValidationError: If the configured chain id is not an integer.

    """
    env_file_path = Path(".env")
    if env_file_path.exists():
        log.info("Loading environment variables from .env file")
        load_dotenv(env_file_path)
    else:
        log.info(".env file not found. Falling back to environment variables.")

    environment = os.getenv("ENVIRONMENT", "production").upper()
    log.info("Using %s environment", environment.lower())

    api_url = os.environ.get(f"LIMITS_API_URL_{environment}", DEFAULT_API_URL)
    permit_api_url = os.environ.get(
        f"LIMITS_PERMIT_API_URL_{environment}", DEFAULT_PERMIT_API_URL
    )
    private_key = os.environ.get(f"LIMITS_PRIVATE_KEY_{environment}")
    raw_chain_id = os.environ.get(f"LIMITS_CHAIN_ID_{environment}")
    try:
        chain_id = DEFAULT_CHAIN_ID if raw_chain_id is None else int(raw_chain_id, 0)
    except ValueError as e:
        raise ValidationError(f"Invalid LIMITS_CHAIN_ID_{environment}: {e}") from e

    return api_url, permit_api_url, private_key, chain_id
