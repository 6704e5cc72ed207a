import base64
import hashlib
import logging
import os
import secrets
import string
import time
from typing import Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError

from shortener.exceptions import EntropyFailure, InvalidURL

logger = logging.getLogger(__name__)

RANDOM_CHARS = string.ascii_lowercase + string.ascii_uppercase + string.digits
RANDOM_STRING_LENGTH = 32

# URL-safe base64 alphabet
URL_SAFE_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-_"
MAX_LENGTH = 43
MAX_URL_LENGTH = int(os.getenv("MAX_URL_LENGTH", 2048))

url_adapter = TypeAdapter(AnyUrl)


def check_code_length(length: int) -> int:
    if not 0 < length <= MAX_LENGTH:
        raise ValueError(f"Short code length must be between 1 and {MAX_LENGTH}")
    return length


DEFAULT_LENGTH = check_code_length(int(os.getenv("SHORT_CODE_LENGTH", 9)))


def uniqid(prefix: str = "", now_ns: Optional[int] = None) -> str:
    """Append a time-based salt to prefix.

    The salt is the current second as 8 hex digits followed by the low 20 bits
    of the nanosecond clock as 5 hex digits.
    """

    if now_ns is None:
        now_ns = time.time_ns()
    seconds = now_ns // 1_000_000_000
    fraction = now_ns % 0x100000
    return f"{prefix}{seconds:08x}{fraction:05x}"


def random_string(length: int = RANDOM_STRING_LENGTH) -> str:
    """Draw length characters uniformly from RANDOM_CHARS using the OS CSPRNG."""

    try:
        return "".join(secrets.choice(RANDOM_CHARS) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        logger.critical(f"Secure random source failed: {str(exc)}")
        raise EntropyFailure(str(exc)) from exc


def generate_short_code(length: int = DEFAULT_LENGTH) -> str:
    """Generate a shortened URL code."""

    check_code_length(length)

    digest = hashlib.sha256(uniqid(random_string()).encode("utf-8")).digest()
    # URL-safe alphabet, codes must stay a single path segment
    encoded = base64.urlsafe_b64encode(digest).decode("ascii")
    return encoded[:length]


def validate_url(url: object) -> None:
    """Reject anything that is not an absolute URL with a scheme and a host.

    The caller keeps its own string; pydantic's normalised form is only used
    for the checks.
    """

    if not url or not isinstance(url, str):
        raise InvalidURL(url, "URL is required")

    try:
        size = len(url.encode("utf-8"))
    except UnicodeEncodeError as exc:
        raise InvalidURL(url, "URL is not valid UTF-8") from exc

    # counted in bytes, the unique index on long_url is limited in bytes
    if size > MAX_URL_LENGTH:
        raise InvalidURL(url, f"URL is too long (max {MAX_URL_LENGTH} bytes)")

    if any(char.isspace() or not char.isprintable() for char in url):
        raise InvalidURL(url, "URL must not contain whitespace or control characters")

    try:
        parsed = url_adapter.validate_python(url)
    except ValidationError as exc:
        raise InvalidURL(url, exc.errors()[0]["msg"]) from exc

    if not parsed.host:
        raise InvalidURL(url, "URL must include a host")
