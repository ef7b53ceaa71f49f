"""
Provider error normalisation.

Errors coming back from the generation API carry a bracketed status prefix
(``[429] ...``) and provider jargon. Before an error is shown or recorded on a
result item it is stripped and mapped onto a small set of categories.
"""

import re
from enum import Enum

from storycreator.core.constants import ENTITY_NOT_FOUND_SIGNATURE


class ErrorCategory(Enum):
    """User-facing error categories."""
    QUOTA = "quota"
    SAFETY_BLOCK = "safety_block"
    BAD_REQUEST = "bad_request"
    BAD_KEY = "bad_key"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


# Leading "[...]" optionally followed by a colon
_STATUS_PREFIX = re.compile(r"^\s*\[[^\]]*\]\s*:?\s*")

# Checked in order; the first match wins
_CATEGORY_PATTERNS = [
    (ErrorCategory.BAD_KEY, re.compile(
        r"api key not valid|api_key_invalid|invalid api key|permission_denied|unauthenticated|\b40[13]\b",
        re.IGNORECASE)),
    (ErrorCategory.QUOTA, re.compile(
        r"\b429\b|resource_exhausted|quota|rate limit", re.IGNORECASE)),
    (ErrorCategory.SAFETY_BLOCK, re.compile(
        r"safety|blocked|prohibited_content|responsible ai", re.IGNORECASE)),
    (ErrorCategory.BAD_REQUEST, re.compile(
        r"\b400\b|invalid_argument|failed_precondition", re.IGNORECASE)),
    (ErrorCategory.SERVER_ERROR, re.compile(
        r"\b50[0-4]\b|internal|unavailable|deadline_exceeded|overloaded", re.IGNORECASE)),
]

CATEGORY_MESSAGES = {
    ErrorCategory.QUOTA: "API quota exceeded. Wait a moment or check your plan and billing details.",
    ErrorCategory.SAFETY_BLOCK: "The request was blocked by safety filters. Try rephrasing the prompt.",
    ErrorCategory.BAD_REQUEST: "The request was rejected as invalid. Check the prompt and reference images.",
    ErrorCategory.BAD_KEY: "The API key is missing or invalid. Check your API key configuration.",
    ErrorCategory.SERVER_ERROR: "The generation service had a temporary problem. Please try again later.",
}


def strip_status_prefix(message: str) -> str:
    """Remove a single leading bracketed status prefix from an error message."""
    if not message:
        return ""
    return _STATUS_PREFIX.sub("", message, count=1).strip()


def classify_error(message: str) -> ErrorCategory:
    """Map a raw or stripped provider message onto an ErrorCategory."""
    if not message:
        return ErrorCategory.UNKNOWN
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(message):
            return category
    return ErrorCategory.UNKNOWN


def user_facing_message(message: str) -> str:
    """Return the message to record on a failed item.

    The category is decided on the raw text so the status code still counts;
    unknown errors keep their own (stripped) wording.
    """
    category = classify_error(message)
    if category is ErrorCategory.UNKNOWN:
        return strip_status_prefix(message) or "Generation failed unexpectedly."
    return CATEGORY_MESSAGES[category]


def is_entity_not_found(message: str) -> bool:
    """True for the provider's authentication/billing failure signature."""
    return bool(message) and ENTITY_NOT_FOUND_SIGNATURE in message.lower()
