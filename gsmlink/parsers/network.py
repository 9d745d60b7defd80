"""
Network-specific response parsers.

Parses responses for signal quality, operator and service centre commands.
"""

import logging
from typing import Optional

from .base import ResponseParser
from ..types import AddressData, OperatorInfo, SignalQuality
from ..exceptions import ParseError

logger = logging.getLogger(__name__)


class SignalQualityParser(ResponseParser[SignalQuality]):
    """Parser for AT+CSQ (signal quality) response."""

    def parse(self, response: list[str]) -> SignalQuality:
        """
        Parse AT+CSQ response.

        Expected format (prefix removed): "24,99"
        """
        if not response:
            raise ParseError(
                "Empty signal quality response",
                command="AT+CSQ"
            )

        try:
            rssi_str, ber_str = response[0].split(",")
            return SignalQuality(rssi=int(rssi_str), ber=int(ber_str))
        except (ValueError, IndexError) as e:
            raise ParseError(
                f"Failed to parse signal quality: {response[0]}",
                command="AT+CSQ",
                response=response[0]
            ) from e


class CurrentOperatorParser(ResponseParser[Optional[OperatorInfo]]):
    """Parser for AT+COPS? (current operator) response."""

    def parse(self, response: list[str]) -> Optional[OperatorInfo]:
        """
        Parse AT+COPS? response.

        Expected formats (prefix removed):
            "0,0,\"Vodafone\",0"   (with access technology)
            "0,2,\"26202\""        (without access technology)
            "0"                    (no operator selected)

        Returns None if no operator is selected.
        """
        if not response:
            raise ParseError(
                "Empty operator response",
                command="AT+COPS?"
            )

        # Only the mode: not registered
        if "," not in response[0]:
            return None

        try:
            parts = response[0].split(",", 3)
            return OperatorInfo(
                mode=int(parts[0]),
                format=int(parts[1]),
                oper=parts[2].strip('"') if len(parts) > 2 else None,
                act=int(parts[3]) if len(parts) > 3 else None
            )
        except (ValueError, IndexError) as e:
            raise ParseError(
                f"Failed to parse operator info: {response[0]}",
                command="AT+COPS?",
                response=response[0]
            ) from e


class AddressDataParser(ResponseParser[AddressData]):
    """Parser for AT+CSCA? (service centre address) response."""

    def parse(self, response: list[str]) -> AddressData:
        """
        Parse AT+CSCA? response.

        Expected format (prefix removed): "\"+491710760000\",145"
        """
        if not response:
            raise ParseError(
                "Empty service centre address response",
                command="AT+CSCA?"
            )

        try:
            address, _, toa = response[0].rpartition(",")
            if not address:
                # No type of address given
                return AddressData(address=response[0].strip('"'))
            return AddressData(address=address.strip('"'), type_of_address=int(toa))
        except ValueError as e:
            raise ParseError(
                f"Failed to parse service centre address: {response[0]}",
                command="AT+CSCA?",
                response=response[0]
            ) from e
