"""
SMS manager.

Handles SMS operations in PDU mode: indications, storage selection, send,
read, list, delete and acknowledge.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..types import (
    MemoryStatus,
    MessageIndicationSettings,
    MessageMemoryStatus,
    MessageStatus,
    StoredMessage,
)
from ..parsers.base import split_response
from ..parsers.sms import SMSParser

if TYPE_CHECKING:
    from ..core import PhoneSession

logger = logging.getLogger(__name__)

# Ends the PDU after the AT+CMGS prompt
CTRL_Z = "\x1a"

# Input prompt after AT+CMGS
SMS_PROMPT = r"\r\n> "


class SMSManager:
    """
    Manages SMS operations.

    All operations use PDU mode. Encoding and decoding of PDUs is left to
    the caller; messages are sent and read as hex strings.

    Example:

    .. code-block:: python

        phone.sms.set_message_indications(MessageIndicationSettings(2, 1, 0, 0, 0))
        ref = phone.sms.send_message(pdu_hex, actual_length=len(pdu_hex) // 2 - 1)
    """

    def __init__(self, session: "PhoneSession") -> None:
        """
        Initialize SMS manager.

        Args:
            session: PhoneSession instance for AT command execution
        """
        self.session = session
        self._sms_parser = SMSParser()

        logger.debug("Initialized SMSManager")

    def _activate_pdu_mode(self) -> None:
        logger.info("Activating PDU mode...")
        self.session.protocol.exec_and_receive_until_terminator("AT+CMGF=0")

    def set_message_indications(self, settings: MessageIndicationSettings) -> None:
        """
        Configure how the phone announces new messages.

        Args:
            settings: New message indication settings

        Example:

        .. code-block:: python

            # Announce new messages by storage location (+CMTI)
            phone.sms.set_message_indications(MessageIndicationSettings(mode=2, deliver_style=1))
        """
        logger.info("Setting message indications...")
        cmd = (
            f"AT+CNMI={settings.mode},{settings.deliver_style},{settings.cell_broadcast_style},"
            f"{settings.status_report_style},{settings.buffer_setting}"
        )
        self.session.protocol.exec_and_receive_until_terminator(cmd)

    def send_message(self, pdu: str, actual_length: int) -> int:
        """
        Send an SMS-SUBMIT PDU.

        The whole exchange (command, prompt, PDU, result) runs under one
        hold of the session gate.

        Args:
            pdu: PDU as hex string, including the SMSC information
            actual_length: PDU length in octets, excluding the SMSC information

        Returns:
            Message reference number

        Raises:
            GsmCommError: If the phone rejects the message
        """
        protocol = self.session.protocol
        with protocol.raw_access():
            self._activate_pdu_mode()

            logger.info("Sending message...")
            cmd = f"AT+CMGS={actual_length}"
            protocol.exec_and_receive_until_pattern(cmd, SMS_PROMPT)

            protocol.send(pdu + CTRL_Z)
            response = protocol.receive_until_terminator()

        reference = self._sms_parser.parse_cmgs(split_response(response))
        logger.info(f"Message sent, reference: {reference}")
        return reference

    def select_read_storage(self, storage: str) -> MemoryStatus:
        """
        Select the storage used for reading, listing and deleting (mem1).

        Args:
            storage: Storage name (e.g., "SM", "ME")

        Returns:
            MemoryStatus of the selected storage
        """
        logger.info(f'Selecting "{storage}" as read storage...')
        response = self.session.protocol.exec_and_receive_until_terminator(f'AT+CPMS="{storage}"')
        status = self._sms_parser.parse_cpms(split_response(response)).read
        logger.info(f"Memory status: {status.used}/{status.total} used")
        return status

    def get_message_memory_status(self, storage: Optional[str] = None) -> MessageMemoryStatus:
        """
        Get usage of the message storages.

        Args:
            storage: Storage to select for reading first; queries the
                     current storages if None

        Returns:
            MessageMemoryStatus for mem1, mem2 and mem3
        """
        cmd = "AT+CPMS?" if storage is None else f'AT+CPMS="{storage}"'
        response = self.session.protocol.exec_and_receive_until_terminator(cmd)
        return self._sms_parser.parse_cpms(split_response(response))

    def read_message(self, index: int, storage: Optional[str] = None) -> StoredMessage:
        """
        Read a message.

        Args:
            index: Message index
            storage: Storage to read from; the current storage if None

        Returns:
            StoredMessage with status and PDU hex

        Example:

        .. code-block:: python

            # Read a message announced by +CMTI
            location = phone.pop_message().indication
            message = phone.sms.read_message(location.index, location.storage)
        """
        with self.session.protocol.raw_access():
            if storage is not None:
                self.select_read_storage(storage)
            self._activate_pdu_mode()
            logger.info(f"Reading message from index {index}...")
            response = self.session.protocol.exec_and_receive_until_terminator(f"AT+CMGR={index}")
        return self._sms_parser.parse_cmgr_pdu(split_response(response), index)

    def list_messages(
        self,
        status: MessageStatus = MessageStatus.ALL,
        storage: Optional[str] = None
    ) -> list[StoredMessage]:
        """
        List messages by status.

        Args:
            status: Message status filter (default: ALL)
            storage: Storage to list; the current storage if None

        Returns:
            List of StoredMessage objects
        """
        with self.session.protocol.raw_access():
            if storage is not None:
                self.select_read_storage(storage)
            self._activate_pdu_mode()
            logger.info(f"Reading messages, requesting status {status.name}...")
            response = self.session.protocol.exec_and_receive_until_terminator(f"AT+CMGL={int(status)}")

        messages = self._sms_parser.parse_cmgl_pdu(split_response(response))
        logger.info(f"{len(messages)} message(s) read.")
        return messages

    def delete_message(self, index: int, flag: Optional[int] = None, storage: Optional[str] = None) -> None:
        """
        Delete a message.

        Args:
            index: Message index
            flag: Optional delete flag (AT+CMGD second parameter)
            storage: Storage to delete from; the current storage if None
        """
        cmd = f"AT+CMGD={index}" if flag is None else f"AT+CMGD={index},{flag}"
        with self.session.protocol.raw_access():
            if storage is not None:
                self.select_read_storage(storage)
            self._activate_pdu_mode()
            logger.info(f"Deleting message at index {index}...")
            self.session.protocol.exec_and_receive_until_terminator(cmd)

    def acknowledge_new_message(self, ok: bool = True) -> None:
        """
        Acknowledge a message delivered directly to the application (+CMT).

        Args:
            ok: Positive acknowledgement if True, otherwise negative
        """
        cmd = "AT+CNMA" if ok else "AT+CNMA=2"
        with self.session.protocol.raw_access():
            self._activate_pdu_mode()
            logger.info("Acknowledging new message...")
            self.session.protocol.exec_and_receive_until_terminator(cmd)
