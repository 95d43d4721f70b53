"""
Inbound message validation and sanitization.

validate_message() rejects anything that looks like shell syntax before it is
admitted; sanitize() reduces admitted text to a conservative character set.
"""

import re

from voiceserver.core.errors import ValidationError

MAX_MESSAGE_LENGTH = 500

FORBIDDEN_CHARACTERS = frozenset(";&|><`${}[]\\")

# Letters, digits, whitespace and a small punctuation set
_DISALLOWED = re.compile(r"[^\w\s.,!?'\"\-:()/%@#]|_")


def validate_message(message) -> str:
    """
    Check that a message is a non-empty string of acceptable length and content.

    Returns:
        The message unchanged

    Raises:
        ValidationError: On wrong type, empty text, excess length or forbidden characters
    """
    if not isinstance(message, str):
        raise ValidationError("Message must be a string", f"Rejected message of type {type(message).__name__}")

    if not message.strip():
        raise ValidationError("Message must not be empty")

    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message too long (max {MAX_MESSAGE_LENGTH} characters)",
            f"Rejected message of length {len(message)}"
        )

    found = sorted(FORBIDDEN_CHARACTERS.intersection(message))
    if found:
        raise ValidationError(
            "Message contains forbidden characters",
            f"Rejected message containing {''.join(found)!r}"
        )

    return message


def sanitize(text: str) -> str:
    """Strip characters outside the allow-set and truncate. Idempotent."""
    return _DISALLOWED.sub("", text)[:MAX_MESSAGE_LENGTH]


# No path separators or leading dash: ids become model file names and argv entries
_VOICE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.() \-]{0,99}$")


def is_valid_voice_id(voice_id) -> bool:
    return isinstance(voice_id, str) and bool(_VOICE_ID.match(voice_id)) and ".." not in voice_id


def validate_voice_id(voice_id):
    """
    Check an optional voice identifier.

    Voice ids end up in model file names and command arguments, so they are
    limited to letters, digits, spaces and the punctuation . _ - ( ).
    Backends only list ids that pass this check.
    """
    if voice_id is None:
        return None
    if not is_valid_voice_id(voice_id):
        raise ValidationError("Invalid voice_id", f"Rejected voice_id {voice_id!r}")
    return voice_id
