"""
Input validation for request bodies.

Only shape and length checks. Message text is stored and replayed
verbatim, so nothing here rewrites it.
"""

import re
from typing import Optional

from .exceptions import ValidationError


class InputValidator:
    """
    Validates user-supplied fields before they reach the core.
    """

    MAX_MESSAGE_LENGTH = 4000
    MAX_USERNAME_LENGTH = 64
    MAX_PASSWORD_LENGTH = 256
    EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

    @staticmethod
    def validate_message(message, max_length: Optional[int] = None) -> str:
        """
        Validate a chat message.

        :param message: Raw message from the request body
        :param max_length: Override for MAX_MESSAGE_LENGTH
        :return: The message, unchanged
        :raises ValidationError: If message is not a non-blank string or too long
        """
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message must be a non-empty string")

        limit = max_length or InputValidator.MAX_MESSAGE_LENGTH
        if len(message) > limit:
            raise ValidationError(
                f"Message exceeds maximum length of {limit} characters"
            )

        if "\x00" in message:
            raise ValidationError("Message contains a NUL character")

        return message

    @staticmethod
    def validate_email(email) -> str:
        if not isinstance(email, str) or not InputValidator.EMAIL_PATTERN.match(email.strip()):
            raise ValidationError("A valid email address is required")
        return email.strip().lower()

    @staticmethod
    def validate_length(text, max_length: int, field_name: str = "Input") -> str:
        """
        Validate a required text field.

        :param text: Text to validate
        :param max_length: Maximum allowed length
        :param field_name: Name of the field for error messages
        :return: Validated text
        :raises ValidationError: If text is blank or exceeds maximum length
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError(f"{field_name} must be a non-empty string")

        if len(text) > max_length:
            raise ValidationError(
                f"{field_name} exceeds maximum length of {max_length} characters"
            )

        return text
