"""
Response parsers for AT command responses.

Provides type-safe parsing of phone responses into structured data.
"""

from .base import (
    ResponseParser,
    SimpleValueParser,
    split_response,
)
from .network import SignalQualityParser, CurrentOperatorParser, AddressDataParser
from .sms import SMSParser

__all__ = [
    "ResponseParser",
    "SimpleValueParser",
    "split_response",
    "SignalQualityParser",
    "CurrentOperatorParser",
    "AddressDataParser",
    "SMSParser",
]
