"""Environment and utility functions."""

import logging
import os
import sys
from pathlib import Path

import keyring
from keyring.errors import KeyringError

from ..config import API_KEY_ENV_VARS, ENV_FILE, LOG_DATE_FORMAT, LOG_FORMAT

SERVICE_NAME = "watermark_eraser"
KEYRING_USER = "gemini_api_key"

logger = logging.getLogger(__name__)


def _read_key_from_file(env_file: str = ENV_FILE) -> str | None:
    """Internal helper to read the API key from a .env file (fallback method)."""
    env_path = Path(env_file)
    if not env_path.exists():
        return None
    try:
        with open(env_path, encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                for var in API_KEY_ENV_VARS:
                    if line.startswith(f"{var}="):
                        key = line.split('=', 1)[1].strip().strip('"\'')
                        if key and key != 'your_key_here':
                            return key
    except OSError as e:
        logger.debug(f"Failed to read {env_file}: {e}")
    return None


def store_key_secure(key: str) -> bool:
    """Store the API key in the system keyring.
    
    Returns:
        True if stored in keyring, False if no usable keyring backend
    """
    try:
        keyring.set_password(SERVICE_NAME, KEYRING_USER, key)
        return True
    except KeyringError as e:
        logger.debug(f"Keyring unavailable: {e}")
        return False


def retrieve_key_secure() -> str | None:
    """Retrieve the API key from the system keyring."""
    try:
        return keyring.get_password(SERVICE_NAME, KEYRING_USER)
    except KeyringError as e:
        logger.debug(f"Keyring unavailable: {e}")
        return None


# Default log file location
DEFAULT_LOG_FILE = "watermark_eraser.log"


def setup_logging(level: int = logging.INFO, log_file: str | None = DEFAULT_LOG_FILE) -> None:
    """Set up logging configuration.
    
    Logs are written to both console (stderr) and a file.
    
    Args:
        level: Logging level
        log_file: Path to log file (None to disable file logging)
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            handlers.append(file_handler)
        except OSError as e:
            # Fall back to console-only if file logging fails
            print(f"Warning: Could not open log file '{log_file}': {e}", file=sys.stderr)
    
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True  # Replace any existing handlers
    )


def load_api_key(env_file: str = ENV_FILE) -> str | None:
    """Load the Gemini API key from environment, keyring, or .env file.
    
    Returns:
        Key string or None if not found
    """
    for var in API_KEY_ENV_VARS:
        key = os.getenv(var)
        if key:
            return key
    
    key = retrieve_key_secure()
    if key:
        return key
    
    return _read_key_from_file(env_file)


def save_api_key(key: str, env_file: str = ENV_FILE) -> bool:
    """Save the API key to the system keyring if available, otherwise .env file.
    
    Args:
        key: Key to save
        env_file: Fallback file
        
    Returns:
        True if stored in the keyring, False if written to the file
        
    Raises:
        ValueError: If key is empty
    """
    if not key or not key.strip():
        raise ValueError("API key cannot be empty")
    
    key = key.strip()
    if store_key_secure(key):
        return True
    
    env_path = Path(env_file)
    var = API_KEY_ENV_VARS[0]
    lines: list[str] = []
    if env_path.exists():
        with open(env_path, encoding='utf-8') as f:
            lines = f.readlines()
    
    for i, line in enumerate(lines):
        if line.strip().startswith(f"{var}="):
            lines[i] = f"{var}={key}\n"
            break
    else:
        if not lines:
            lines.append("# Gemini API key\n")
            lines.append("# SECURITY: This file contains sensitive data.\n")
        lines.append(f"{var}={key}\n")
    
    with open(env_path, 'w', encoding='utf-8') as f:
        f.writelines(lines)
    
    # Restrictive permissions on Unix systems (0o600 = rw-------)
    try:
        os.chmod(env_path, 0o600)
    except OSError:
        pass
    
    logger.warning(
        f"API key saved to {env_path.absolute()}. "
        "Note: the key is stored in plaintext. Ensure this file is not committed to version control."
    )
    return False
