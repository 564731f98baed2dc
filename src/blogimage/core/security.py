"""Input validation and error-message sanitisation.

Every error string that leaves the pipeline goes through
:func:`safe_error_message`, which redacts anything that looks like a
credential. Upstream SDKs sometimes echo request URLs or headers in their
exception text, and those may contain the API key.
"""

from __future__ import annotations

import re

from .errors import InvalidInputError

MIN_PROMPT_LENGTH = 3
MAX_PROMPT_LENGTH = 4000
MAX_OUTPUT_PATH_LENGTH = 500

REDACTED = "[REDACTED]"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"AIza[0-9A-Za-z_\-]{20,}"),
    re.compile(r"\bsk-[0-9A-Za-z_\-]{16,}"),
    re.compile(r"(?i)\bbearer\s+[0-9A-Za-z._\-]+"),
    re.compile(r"(?i)([?&](?:key|api_key|apikey|token)=)[^&\s]+"),
    re.compile(
        r"(?i)((?:api[_-]?key|x-goog-api-key|authorization)[\"']?\s*[:=]\s*[\"']?)"
        r"[^\s\"',}]+"
    ),
)


def validate_prompt(prompt: str) -> str:
    """Return the prompt with control characters and outer whitespace removed.

    Raises:
        InvalidInputError: If the cleaned prompt is shorter than 3 or longer
            than 4000 characters.
    """
    cleaned = _CONTROL_CHARS.sub("", prompt or "").strip()
    if len(cleaned) < MIN_PROMPT_LENGTH:
        raise InvalidInputError(f"Prompt must be at least {MIN_PROMPT_LENGTH} characters")
    if len(cleaned) > MAX_PROMPT_LENGTH:
        raise InvalidInputError(f"Prompt must be less than {MAX_PROMPT_LENGTH} characters")
    return cleaned


def validate_output_path(path: str) -> str:
    """Reject output paths that cannot be written safely.

    Raises:
        InvalidInputError: If the path is blank, too long or contains NUL bytes.
    """
    if not path or not path.strip():
        raise InvalidInputError("Output path must not be empty")
    if len(path) > MAX_OUTPUT_PATH_LENGTH:
        raise InvalidInputError(
            f"Output path must be less than {MAX_OUTPUT_PATH_LENGTH} characters"
        )
    if "\x00" in path:
        raise InvalidInputError("Output path must not contain NUL bytes")
    return path.strip()


def redact_secrets(text: str, secrets: tuple[str, ...] = ()) -> str:
    """Replace credential-looking substrings (and any known secrets) in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    for pattern in _SECRET_PATTERNS:
        if pattern.groups:
            text = pattern.sub(lambda m: m.group(1) + REDACTED, text)
        else:
            text = pattern.sub(REDACTED, text)
    return text


def safe_error_message(error: BaseException | str, secrets: tuple[str, ...] = ()) -> str:
    """Return a user-facing error message with credentials removed."""
    text = error if isinstance(error, str) else (str(error) or type(error).__name__)
    return redact_secrets(text, secrets)
