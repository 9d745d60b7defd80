"""
Response framing and classification.

Every raw response is classified in a fixed order: success, bare ERROR,
message service error, mobile equipment error, no answer, anything else.
"""

import logging
import re
from typing import Optional

from ..exceptions import (
    EquipmentError,
    GenericProtocolError,
    MessageServiceError,
    ResponseTimeoutError,
    UnexpectedResponseError,
)

logger = logging.getLogger(__name__)

COMMAND_TERMINATOR = "\r"
OK_TERMINATOR = "\r\nOK\r\n"
ERROR_TERMINATOR = "\r\nERROR\r\n"
MESSAGE_SERVICE_ERROR = re.compile(r"\r\n\+CMS ERROR: (\d+)\r\n")
EQUIPMENT_ERROR = re.compile(r"\r\n\+CME ERROR: (\d+)\r\n")

GENERIC_ERROR_TEXT = (
    "The phone reports an unspecified error. This typically happens when a command is "
    "not supported by the device, a command is not valid for the current state or if a "
    "parameter is incorrect."
)


def is_success(text: str) -> bool:
    """Check if text contains the OK terminator."""
    return OK_TERMINATOR in text


def is_generic_error(text: str) -> bool:
    """Check if text contains a bare ERROR terminator."""
    return ERROR_TERMINATOR in text


def is_message_service_error(text: str) -> bool:
    """Check if text contains a +CMS ERROR line."""
    return MESSAGE_SERVICE_ERROR.search(text) is not None


def is_equipment_error(text: str) -> bool:
    """Check if text contains a +CME ERROR line."""
    return EQUIPMENT_ERROR.search(text) is not None


def is_final(text: str) -> bool:
    """Check if text ends a transaction, successfully or not."""
    return (
        is_success(text)
        or is_generic_error(text)
        or is_message_service_error(text)
        or is_equipment_error(text)
    )


def strip_echo(text: str, sent: Optional[str]) -> str:
    """Remove the echoed command from the start of text."""
    if sent and text.startswith(sent):
        return text[len(sent):]
    return text


def strip_terminator(text: str) -> str:
    """Remove a trailing OK terminator."""
    if text.endswith(OK_TERMINATOR):
        return text[:text.rindex(OK_TERMINATOR)]
    return text


def raise_for_error(text: str, command: Optional[str] = None) -> None:
    """
    Raise the exception matching an unsuccessful response.

    Args:
        text: Raw response that is not a success response
        command: The command that produced it, for context

    Raises:
        GenericProtocolError: Bare ERROR
        MessageServiceError: +CMS ERROR with its code
        EquipmentError: +CME ERROR with its code
        ResponseTimeoutError: Empty response
        UnexpectedResponseError: Anything else
    """
    if is_generic_error(text):
        logger.error(f"Failed. {GENERIC_ERROR_TEXT} The response received was: {text!r}")
        raise GenericProtocolError(GENERIC_ERROR_TEXT, command=command, response=text)

    match = MESSAGE_SERVICE_ERROR.search(text)
    if match:
        code = int(match.group(1))
        logger.error(f"Failed. Phone reports message service (MS) error {code}.")
        raise MessageServiceError(
            f"Message service error {code} occurred.", code, command=command, response=text
        )

    match = EQUIPMENT_ERROR.search(text)
    if match:
        code = int(match.group(1))
        logger.error(f"Failed. Phone reports mobile equipment (ME) error {code}.")
        raise EquipmentError(
            f"Mobile equipment error {code} occurred.", code, command=command, response=text
        )

    if not text:
        logger.error("Failed. No answer from phone.")
        raise ResponseTimeoutError("No answer from phone.", command=command)

    logger.error(f"Failed. Unexpected response: {text!r}")
    raise UnexpectedResponseError(f"Unexpected response received from phone: {text!r}", raw=text, command=command)


def classify_response(text: str, sent: Optional[str] = None) -> str:
    """
    Classify a raw response and return its payload.

    Args:
        text: Raw response
        sent: The exact text written (command plus terminator), used to
              strip the echo

    Returns:
        The response with terminator and echo removed

    Raises:
        GsmCommError: A subclass matching the failure, see raise_for_error()
    """
    if is_success(text):
        return strip_echo(strip_terminator(text), sent)
    raise_for_error(text, command=sent.rstrip(COMMAND_TERMINATOR) if sent else None)
