"""
Network manager.

Handles signal quality, operator and service centre queries.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..types import AddressData, OperatorInfo, SignalQuality
from ..parsers.base import split_response
from ..parsers.network import (
    AddressDataParser,
    CurrentOperatorParser,
    SignalQualityParser
)

if TYPE_CHECKING:
    from ..core import PhoneSession

logger = logging.getLogger(__name__)


class NetworkManager:
    """
    Manages network operations.

    Provides methods for signal monitoring and operator information.
    """

    def __init__(self, session: "PhoneSession") -> None:
        """
        Initialize network manager.

        Args:
            session: PhoneSession instance for AT command execution
        """
        self.session = session

        # Parsers
        self._signal_parser = SignalQualityParser()
        self._operator_parser = CurrentOperatorParser()
        self._address_parser = AddressDataParser()

        logger.debug("Initialized NetworkManager")

    def get_signal_quality(self) -> SignalQuality:
        """
        Get signal quality.

        Returns:
            SignalQuality with RSSI and BER

        Example:

        .. code-block:: python

            signal = phone.network.get_signal_quality()
            if signal.is_valid:
                print(f"Signal: {signal.rssi_dbm} dBm")
        """
        logger.info("Getting signal quality...")
        response = self.session.protocol.exec_and_receive_until_terminator("AT+CSQ")
        signal = self._signal_parser.parse(split_response(response, "+CSQ"))
        logger.debug(f"Signal quality: {signal}")
        return signal

    def get_current_operator(self) -> Optional[OperatorInfo]:
        """
        Get the currently selected operator.

        Returns:
            OperatorInfo, or None if no operator is selected
        """
        logger.info("Getting current operator...")
        response = self.session.protocol.exec_and_receive_until_terminator("AT+COPS?")
        operator = self._operator_parser.parse(split_response(response, "+COPS"))
        if operator is None:
            logger.info("No operator selected")
        return operator

    def get_smsc_address(self) -> AddressData:
        """
        Get the SMS service centre address.

        Returns:
            AddressData with the address and its type of address
        """
        logger.info("Getting SMSC address...")
        response = self.session.protocol.exec_and_receive_until_terminator("AT+CSCA?")
        return self._address_parser.parse(split_response(response, "+CSCA"))
