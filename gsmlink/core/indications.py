"""
Unsolicited new-message indications.

The phone announces new messages and status reports on its own, either as a
pointer into its storage (+CMTI, +CDSI) or with the PDU inline (+CMT, +CDS).
Such text may arrive before, after or in the middle of a command response.
This module recognizes those shapes and cuts them out of received text.
"""

import logging
import re
from enum import Enum
from typing import Optional

from ..types import MemoryLocation, MessageIndication, ShortMessage

logger = logging.getLogger(__name__)


def pdu_indication_complete(length: int, pdu: str) -> bool:
    """
    Check whether an inline PDU indication has fully arrived.

    The first PDU octet is the length of the SMSC information that precedes
    the TPDU, and ``length`` is the TPDU length the phone announced. The
    indication is treated as complete once at least
    ``2 * length + 2 * first_octet + 2`` hex digits are present.

    This is a best-effort heuristic, not a PDU parse: exotic SMSC encodings
    can make it under- or over-estimate.

    Args:
        length: Declared TPDU length in octets
        pdu: Hex digits received so far

    Returns:
        True if enough hex digits have arrived to extract the indication
    """
    if len(pdu) < 2:
        return False
    try:
        first_octet = int(pdu[:2], 16)
    except ValueError:
        return False
    return len(pdu) >= length * 2 + first_octet * 2 + 2


class IndicationKind(Enum):
    """
    Known indication shapes, in the order they are tried.

    Each member carries its match pattern, start pattern and description.
    """

    DELIVER_MEMORY = (
        r'\+CMTI: "(\w+)",(\d+)',
        r"\+CMTI: ",
        "New SMS-DELIVER received (indicated by memory location)",
    )
    DELIVER_PDU = (
        r"\+CMT: (\w*),(\d+)\r\n(\w+)",
        r"\+CMT: ",
        "New SMS-DELIVER received (indicated by PDU mode version)",
    )
    STATUS_REPORT_MEMORY = (
        r'\+CDSI: "(\w+)",(\d+)',
        r"\+CDSI: ",
        "New SMS-STATUS-REPORT received (indicated by memory location)",
    )
    STATUS_REPORT_PDU = (
        r"\+CDS: (\d+)\r\n(\w+)",
        r"\+CDS: ",
        "New SMS-STATUS-REPORT received (indicated by PDU mode version)",
    )

    def __init__(self, pattern: str, start_pattern: str, description: str) -> None:
        self.pattern = re.compile(pattern)
        self.start_pattern = re.compile(start_pattern)
        self.description = description

    def is_start(self, text: str) -> bool:
        """Check whether text contains the beginning of this indication."""
        return self.start_pattern.search(text) is not None

    def is_complete(self, text: str) -> bool:
        """Check whether text contains a complete indication of this kind."""
        match = self.pattern.search(text)
        if match is None:
            return False
        if self is IndicationKind.DELIVER_PDU:
            return pdu_indication_complete(int(match.group(2)), match.group(3))
        if self is IndicationKind.STATUS_REPORT_PDU:
            return pdu_indication_complete(int(match.group(1)), match.group(2))
        return True

    def extract(self, text: str) -> tuple[str, MessageIndication]:
        """
        Cut the first indication of this kind out of text.

        Args:
            text: Received text containing the indication

        Returns:
            Tuple of (text without the indication, parsed indication)

        Raises:
            ValueError: If text does not contain this indication
        """
        match = self.pattern.search(text)
        if match is None:
            raise ValueError(f"Input does not contain {self.name} indication")

        if self in (IndicationKind.DELIVER_MEMORY, IndicationKind.STATUS_REPORT_MEMORY):
            indication = MemoryLocation(storage=match.group(1), index=int(match.group(2)))
        elif self is IndicationKind.DELIVER_PDU:
            indication = ShortMessage(
                alpha=match.group(1),
                length=int(match.group(2)),
                data=match.group(3)
            )
        else:
            indication = ShortMessage(alpha="", length=int(match.group(1)), data=match.group(2))

        return text[:match.start()] + text[match.end():], indication


def find_complete(text: str) -> Optional[IndicationKind]:
    """Return the first kind with a complete indication in text, if any."""
    for kind in IndicationKind:
        if kind.is_complete(text):
            return kind
    return None


def has_indication(text: str) -> bool:
    """Check if text contains any complete indication."""
    return find_complete(text) is not None


def has_incomplete_indication(text: str) -> bool:
    """
    Check if text starts an indication that has not fully arrived yet.

    Used by the connection worker to decide whether to keep reading.
    """
    return any(kind.is_start(text) and not kind.is_complete(text) for kind in IndicationKind)


def dispatch_indications(text: str) -> tuple[str, list[tuple[MessageIndication, str]]]:
    """
    Remove all complete indications from text.

    Kinds are tried in catalog order; after each extraction the search starts
    over on the remaining text.

    Args:
        text: Received text

    Returns:
        Tuple of (remaining text, list of (indication, description))
    """
    found = []
    kind = find_complete(text)
    while kind is not None:
        text, indication = kind.extract(text)
        logger.info(f"Unsolicited message: {kind.description}")
        found.append((indication, kind.description))
        kind = find_complete(text)
    return text, found
