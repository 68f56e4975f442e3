"""
Short code codec: URL and code validation plus random code generation.

Uniqueness is not handled here; the creation workflow checks the store and
retries with a fresh code.
"""

import re
import secrets
import string
from typing import Annotated, Any, Optional

from pydantic import AnyUrl, TypeAdapter, UrlConstraints
from pydantic import ValidationError as PydanticValidationError

from snaplink_app.config import settings


SHORT_CODE_ALPHABET = string.ascii_letters + string.digits + "_-"
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
MIN_SHORT_CODE_LENGTH = 3
MAX_SHORT_CODE_LENGTH = 10

# No length cap, unlike HttpUrl (2083 characters)
_http_url = TypeAdapter(
    Annotated[AnyUrl, UrlConstraints(allowed_schemes=["http", "https"], host_required=True)]
)


def is_valid_url(value: Any) -> bool:
    """
    Check that value is an absolute http(s) URL.

    Only the http and https schemes are accepted and a host is required;
    length is not limited.
    The parsed form is discarded so the stored URL stays exactly as given.
    """
    if not isinstance(value, str):
        return False
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def is_valid_short_code(value: Any) -> bool:
    """3-10 characters of letters, digits, '-' or '_'"""
    if not isinstance(value, str):
        return False
    return (
        MIN_SHORT_CODE_LENGTH <= len(value) <= MAX_SHORT_CODE_LENGTH
        and SHORT_CODE_PATTERN.match(value) is not None
    )


def generate_short_code(length: int = 6) -> str:
    """
    Generate a random short code of exactly `length` characters.

    The alphabet has 64 symbols and secrets.choice picks uniformly, so every
    character is unbiased. Result is not guaranteed to be unique.
    """
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


def build_short_url(short_code: str, base_url: Optional[str] = None) -> str:
    """Public URL for a short code"""
    base = (base_url or settings.base_url).rstrip("/")
    return f"{base}/{short_code}"
