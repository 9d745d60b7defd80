"""
SMS response parsers for AT commands.

Parses responses from SMS-related AT commands in PDU mode:
- AT+CMGR (Read message)
- AT+CMGS (Send message)
- AT+CMGL (List messages)
- AT+CPMS (Preferred message storage)

PDU contents are passed through as hex; decoding them is left to a PDU codec.
"""

import re

from ..exceptions import ParseError
from ..types import MemoryStatus, MessageMemoryStatus, MessageStatus, StoredMessage


class SMSParser:
    """Parser for SMS-related AT command responses."""

    @staticmethod
    def parse_cmgr_pdu(response: list[str], index: int) -> StoredMessage:
        """
        Parse AT+CMGR response in PDU mode.

        Expected format:
            +CMGR: 0,,24
            07911234567890F0040B911234567890F00000230115103045800548656C6C6F

        Args:
            response: Response lines from AT+CMGR
            index: Message index

        Returns:
            StoredMessage object

        Raises:
            ParseError: If response format is invalid
        """
        if len(response) < 2:
            raise ParseError(
                f"Invalid CMGR PDU response: expected 2 lines, got {len(response)}",
                command=f"AT+CMGR={index}",
                response="\n".join(response)
            )

        # +CMGR: <stat>,[<alpha>],<length>
        header = response[0]
        match = re.match(r'\+CMGR:\s*(\d+),("?[^",]*"?),(\d+)', header)
        if not match:
            raise ParseError(
                f"Could not parse CMGR PDU header: {header}",
                command=f"AT+CMGR={index}",
                response=header
            )

        try:
            status = MessageStatus(int(match.group(1)))
        except ValueError as e:
            raise ParseError(
                f"Unknown message status: {match.group(1)}",
                command=f"AT+CMGR={index}",
                response=header
            ) from e

        return StoredMessage(
            index=index,
            status=status,
            alpha=match.group(2).strip('"'),
            length=int(match.group(3)),
            data=response[1].strip()
        )

    @staticmethod
    def parse_cmgs(response: list[str]) -> int:
        """
        Parse AT+CMGS response (send message).

        Expected format:
            +CMGS: 123

        Where 123 is the message reference number.

        Args:
            response: Response lines from AT+CMGS

        Returns:
            Message reference number

        Raises:
            ParseError: If response format is invalid
        """
        for line in response:
            match = re.match(r'\+CMGS:\s*(\d+)', line)
            if match:
                return int(match.group(1))

        raise ParseError(
            "Could not parse CMGS response",
            command="AT+CMGS",
            response="\n".join(response)
        )

    @staticmethod
    def parse_cmgl_pdu(response: list[str]) -> list[StoredMessage]:
        """
        Parse AT+CMGL response in PDU mode.

        Expected format (multiple messages):
            +CMGL: 1,0,,24
            07911234567890F0040B911234567890F00000230115103045800548656C6C6F
            +CMGL: 2,1,,26
            07911234567890F0040B910987654321F00000230115114530800648692074686572

        Headers that cannot be parsed are skipped together with their PDU.

        Args:
            response: Response lines from AT+CMGL

        Returns:
            List of StoredMessage objects, empty if nothing is stored
        """
        messages = []
        i = 0

        while i < len(response):
            line = response[i]
            i += 1
            if not line.startswith("+CMGL:"):
                continue

            # +CMGL: <index>,<stat>,[<alpha>],<length>
            match = re.match(r'\+CMGL:\s*(\d+),(\d+),("?[^",]*"?),(\d+)', line)
            if not match or i >= len(response):
                continue

            try:
                status = MessageStatus(int(match.group(2)))
            except ValueError:
                status = None

            pdu = response[i].strip()
            i += 1
            if status is None or status == MessageStatus.ALL:
                continue

            messages.append(StoredMessage(
                index=int(match.group(1)),
                status=status,
                alpha=match.group(3).strip('"'),
                length=int(match.group(4)),
                data=pdu
            ))

        return messages

    @staticmethod
    def parse_cpms(response: list[str]) -> MessageMemoryStatus:
        """
        Parse the reply to AT+CPMS (set or query).

        Both reply forms are accepted:
            +CPMS: 3,30,3,30,3,30
            +CPMS: "SM",3,30,"SM",3,30,"SM",3,30

        Args:
            response: Response lines from AT+CPMS

        Returns:
            MessageMemoryStatus; write and receive are None when not reported

        Raises:
            ParseError: If response format is invalid
        """
        line = next((line for line in response if line.startswith("+CPMS:")), None)
        if line is None:
            raise ParseError(
                "Missing CPMS response",
                command="AT+CPMS",
                response="\n".join(response)
            )

        # (storage, used, total) triples; the storage name is optional
        entries = re.findall(r'(?:"(\w*)",)?(\d+),(\d+)', line[len("+CPMS:"):])
        if not entries:
            raise ParseError(
                f"Could not parse CPMS response: {line}",
                command="AT+CPMS",
                response=line
            )

        statuses = [
            MemoryStatus(used=int(used), total=int(total), storage=storage or None)
            for storage, used, total in entries[:3]
        ]
        statuses += [None] * (3 - len(statuses))
        return MessageMemoryStatus(read=statuses[0], write=statuses[1], receive=statuses[2])
