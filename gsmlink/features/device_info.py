"""
Device information manager.

Handles device-related operations: identification, PIN, echo and defaults.
"""

import logging
from typing import TYPE_CHECKING

from ..types import PinStatus
from ..parsers.base import SimpleValueParser, split_response
from ..exceptions import ParseError

if TYPE_CHECKING:
    from ..core import PhoneSession

logger = logging.getLogger(__name__)


class DeviceManager:
    """
    Manages device information and status.

    Provides methods for querying device identity and SIM PIN state.
    """

    def __init__(self, session: "PhoneSession") -> None:
        """
        Initialize device manager.

        Args:
            session: PhoneSession instance for AT command execution
        """
        self.session = session
        self._simple_parser = SimpleValueParser()

        logger.debug("Initialized DeviceManager")

    def _request_value(self, cmd: str, prefix: str) -> str:
        response = self.session.protocol.exec_and_receive_until_terminator(cmd)
        lines = split_response(response, prefix)
        if not lines:
            raise ParseError("Empty response", command=cmd, response=response)
        # Some phones split long identification strings over several lines
        return " ".join(lines)

    def request_manufacturer(self) -> str:
        """
        Get the phone manufacturer.

        Returns:
            Manufacturer string

        Example:

        .. code-block:: python

            print(phone.device.request_manufacturer())  # "SIEMENS"
        """
        logger.info("Requesting manufacturer...")
        manufacturer = self._request_value("AT+CGMI", "+CGMI")
        logger.debug(f"Manufacturer: {manufacturer}")
        return manufacturer

    def request_model(self) -> str:
        """Get the phone model."""
        logger.info("Requesting model...")
        model = self._request_value("AT+CGMM", "+CGMM")
        logger.debug(f"Model: {model}")
        return model

    def request_revision(self) -> str:
        """Get the phone firmware revision."""
        logger.info("Requesting revision...")
        revision = self._request_value("AT+CGMR", "+CGMR")
        logger.debug(f"Revision: {revision}")
        return revision

    def request_serial_number(self) -> str:
        """
        Get the phone serial number (IMEI).

        Returns:
            Serial number string
        """
        logger.info("Requesting serial number...")
        serial_number = self._request_value("AT+CGSN", "+CGSN")
        logger.debug(f"Serial number: {serial_number}")
        return serial_number

    def get_pin_status(self) -> PinStatus:
        """
        Get the SIM password state.

        Returns:
            PinStatus enum value

        Raises:
            ParseError: If the phone reports an unknown state

        Example:

        .. code-block:: python

            if phone.device.get_pin_status() == PinStatus.SIM_PIN:
                phone.device.enter_pin("1234")
        """
        logger.info("Checking PIN status...")
        response = self.session.protocol.exec_and_receive_until_terminator("AT+CPIN?")
        state_str = self._simple_parser.parse(split_response(response, "+CPIN"))

        try:
            status = PinStatus(state_str)
        except ValueError as e:
            raise ParseError(
                f"Unknown PIN status: {state_str}",
                command="AT+CPIN?",
                response=response
            ) from e

        logger.debug(f"PIN status: {status}")
        return status

    def enter_pin(self, pin: str) -> None:
        """
        Enter the SIM PIN.

        The command is written without logging so the PIN never appears
        in log output or log-line events.

        Args:
            pin: The PIN
        """
        logger.info("Entering PIN...")
        self.session.protocol.exec_and_receive_until_terminator(f'AT+CPIN="{pin}"', log=False)

    def reset_to_default_config(self) -> None:
        """Reset the phone settings to their factory defaults (ATZ)."""
        logger.info("Resetting to default configuration...")
        self.session.protocol.exec_and_receive_until_terminator("ATZ")

    def set_echo_mode(self, enabled: bool) -> None:
        """
        Set AT command echo mode on the device.

        Echoed commands are stripped from responses either way.

        Args:
            enabled: True to enable echo (ATE1), False to disable (ATE0)

        Example:

        .. code-block:: python

            phone.device.set_echo_mode(False)  # Disable echo for clean responses
            phone.device.set_echo_mode(True)   # Enable echo for debugging
        """
        cmd = "ATE1" if enabled else "ATE0"
        logger.info(f"Setting echo mode: {'ON' if enabled else 'OFF'} via {cmd}")
        self.session.protocol.exec_and_receive_until_terminator(cmd)
