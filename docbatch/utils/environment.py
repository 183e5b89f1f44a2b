import logging
import os
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "docbatch.toml"
CONFIG_PATH_ENV = "DOCBATCH_CONFIG_PATH"
EMULATOR_HOST_ENV = "FIRESTORE_EMULATOR_HOST"


def find_config_file() -> Optional[str]:
    """Locate ``docbatch.toml``.

    The file is looked up in this order:
      1. Path given by the ``DOCBATCH_CONFIG_PATH`` environment variable.
      2. Current working directory and its parent directories (walking up to root).

    Returns None when no file exists.
    """
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        if os.path.exists(env_path):
            return env_path
        logger.warning(f"{CONFIG_PATH_ENV} points to a missing file: {env_path}")

    cur = os.getcwd()
    while True:
        candidate = os.path.join(cur, CONFIG_FILE_NAME)
        if os.path.exists(candidate):
            return candidate
        parent = os.path.dirname(cur)
        if parent == cur:
            return None
        cur = parent


def load_config() -> Dict[str, Any]:
    """Load ``docbatch.toml`` into a dict, or return an empty dict if there is none.

    Raises:
        RuntimeError: If the file exists but cannot be parsed.
    """
    path = find_config_file()
    if path is None:
        return {}
    try:
        with open(path, "r") as f:
            config = toml.load(f)
    except (toml.TomlDecodeError, OSError) as e:
        raise RuntimeError(f"Failed to load configuration from {path}: {e}") from e
    logger.debug(f"Loaded configuration from {path}")
    return config


def emulator_host() -> Optional[str]:
    """Return the emulator address if ``FIRESTORE_EMULATOR_HOST`` is set."""
    return os.getenv(EMULATOR_HOST_ENV) or None


def verify_gcp_credentials() -> Optional[str]:
    """
    Validates GOOGLE_APPLICATION_CREDENTIALS when it is set.

    Returns the credentials file path, or None when relying on Application
    Default Credentials.

    Raises:
        ValueError: If the variable points to a file that does not exist.
    """
    credentials_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if credentials_path:
        if not os.path.exists(credentials_path):
            raise ValueError(
                f"GOOGLE_APPLICATION_CREDENTIALS path '{credentials_path}' does not exist."
            )
        logger.info(f"Using explicit service account file: {credentials_path}")
        return credentials_path

    logger.info("No GOOGLE_APPLICATION_CREDENTIALS set; relying on default authentication.")
    return None
