"""
Base parser classes and utilities.

Provides reusable parsing functionality for AT command responses.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, TypeVar, Generic

from ..exceptions import ParseError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def split_response(text: str, prefix: Optional[str] = None) -> list[str]:
    """
    Split a classified response into its non-empty lines.

    Args:
        text: Response with terminator and echo already removed
        prefix: Information response prefix to remove from each line
                (e.g., "+CSQ")

    Returns:
        List of stripped lines

    Example:

    .. code-block:: python

        split_response("\\r\\n+CSQ: 24,99\\r\\n", "+CSQ")  # ["24,99"]
    """
    lines = []
    for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        line = line.strip()
        if not line:
            continue
        if prefix and line.startswith(prefix + ":"):
            line = line[len(prefix) + 1:].strip()
        lines.append(line)
    return lines


class ResponseParser(ABC, Generic[T]):
    """
    Abstract base class for response parsers.

    Parsers convert classified AT command responses into typed data structures.
    """

    @abstractmethod
    def parse(self, response: list[str]) -> T:
        """
        Parse AT command response.

        Args:
            response: List of response lines from split_response()

        Returns:
            Parsed data structure

        Raises:
            ParseError: If response cannot be parsed
        """
        pass


class SimpleValueParser(ResponseParser[str]):
    """Parser for simple single-value responses."""

    def __init__(self, expected_lines: int = 1):
        """
        Initialize parser.

        Args:
            expected_lines: Number of response lines expected
        """
        self.expected_lines = expected_lines

    def parse(self, response: list[str]) -> str:
        """Parse simple value response."""
        if len(response) != self.expected_lines:
            raise ParseError(
                f"Expected {self.expected_lines} lines, got {len(response)}",
                response="\n".join(response)
            )
        return response[0]
