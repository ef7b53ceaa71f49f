"""
Centralized environment variable loading for Story Creator.

This module ensures .env is loaded once and consistently across the package.

Usage:
    from storycreator.core.env_loader import ensure_env_loaded
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_env_loaded = False


def ensure_env_loaded(override: bool = False) -> bool:
    """
    Ensure environment variables from the nearest .env are loaded.

    Args:
        override: If True, .env values replace variables already set

    Returns:
        True if a .env file was loaded, False if already loaded or not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = find_dotenv(usecwd=True)
    _env_loaded = True
    if not env_path:
        return False

    load_dotenv(Path(env_path), override=override)
    return True


def get_api_key(key_name: str, fallback_keys: Optional[list[str]] = None) -> Optional[str]:
    """
    Get an API key from environment, with fallback options.

    Args:
        key_name: Primary environment variable name
        fallback_keys: List of fallback variable names to try

    Returns:
        API key value or None if not found
    """
    ensure_env_loaded()

    value = os.getenv(key_name)
    if value:
        return value

    if fallback_keys:
        for fallback in fallback_keys:
            value = os.getenv(fallback)
            if value:
                return value

    return None


def get_google_api_key(key_name: str = "GEMINI_API_KEY") -> Optional[str]:
    """Get the Gemini API key."""
    return get_api_key(key_name, ["GOOGLE_API_KEY", "API_KEY"])
