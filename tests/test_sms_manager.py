"""
Tests for SMS manager.
"""

import pytest
from gsmlink.parsers.sms import SMSParser
from gsmlink.types import MemoryStatus, MessageIndicationSettings, MessageStatus
from gsmlink.exceptions import GenericProtocolError, MessageServiceError, ParseError


SUBMIT_PDU = "0011000B911326880736F40000AA05E8329BFD06"


class TestSendMessage:
    """Test sending messages."""

    def test_send_message(self, phone, mock_transport):
        """Test the full prompt exchange."""
        mock_transport.add_response("\r\nOK\r\n")           # AT+CMGF=0
        mock_transport.add_response("\r\n> ")               # AT+CMGS
        mock_transport.add_response("\r\n+CMGS: 17\r\n\r\nOK\r\n")

        reference = phone.sms.send_message(SUBMIT_PDU, actual_length=19)

        assert reference == 17
        assert mock_transport.written[-3:] == [
            "AT+CMGF=0\r",
            "AT+CMGS=19\r",
            SUBMIT_PDU + "\x1a",
        ]
        assert not phone.session.gate.is_held()

    def test_send_message_rejected(self, phone, mock_transport):
        """Test a message rejected by the network."""
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\n> ")
        mock_transport.add_response("\r\n+CMS ERROR: 38\r\n")

        with pytest.raises(MessageServiceError) as exc_info:
            phone.sms.send_message(SUBMIT_PDU, actual_length=19)

        assert exc_info.value.code == 38
        assert not phone.session.gate.is_held()

    def test_send_message_no_prompt(self, phone, mock_transport):
        """Test an error instead of the input prompt."""
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nERROR\r\n")

        with pytest.raises(GenericProtocolError):
            phone.sms.send_message(SUBMIT_PDU, actual_length=19)

        # The PDU is never written
        assert mock_transport.written[-1] == "AT+CMGS=19\r"


class TestReadMessage:
    """Test reading messages."""

    def test_read_message(self, phone, mock_transport):
        """Test reading a stored message in PDU mode."""
        pdu = "07911326040000F0040B911326880736F4000099309251619580" + "05E8329BFD06"
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response(f"\r\n+CMGR: 1,,24\r\n{pdu}\r\n\r\nOK\r\n")

        message = phone.sms.read_message(3)

        assert message.index == 3
        assert message.status == MessageStatus.RECEIVED_READ
        assert message.alpha == ""
        assert message.length == 24
        assert message.data == pdu
        assert mock_transport.written[-1] == "AT+CMGR=3\r"

    def test_read_empty_location(self, phone, mock_transport):
        """Test that an empty location raises ParseError."""
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        with pytest.raises(ParseError):
            phone.sms.read_message(5)

    def test_read_invalid_index(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\n+CMS ERROR: 321\r\n")

        with pytest.raises(MessageServiceError) as exc_info:
            phone.sms.read_message(99)

        assert exc_info.value.code == 321


class TestOtherOperations:
    """Test indications, deletion and acknowledgement."""

    def test_set_message_indications(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.set_message_indications(MessageIndicationSettings(2, 1, 0, 1, 0))

        assert mock_transport.written[-1] == "AT+CNMI=2,1,0,1,0\r"

    def test_delete_message(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.delete_message(4)

        assert mock_transport.written[-2:] == ["AT+CMGF=0\r", "AT+CMGD=4\r"]

    def test_delete_message_with_flag(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.delete_message(1, flag=4)

        assert mock_transport.written[-1] == "AT+CMGD=1,4\r"

    def test_acknowledge_new_message(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.acknowledge_new_message()

        assert mock_transport.written[-1] == "AT+CNMA\r"

    def test_negative_acknowledgement(self, phone, mock_transport):
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.acknowledge_new_message(ok=False)

        assert mock_transport.written[-1] == "AT+CNMA=2\r"


class TestStorage:
    """Test storage selection and listing."""

    def test_read_message_from_storage(self, phone, mock_transport):
        """Test that the announced storage is selected before reading."""
        pdu = "07911326040000F0040B911326880736F4000099309251619580" + "05E8329BFD06"
        mock_transport.add_response("\r\n+CPMS: 2,100,2,100,2,100\r\n\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response(f"\r\n+CMGR: 0,,24\r\n{pdu}\r\n\r\nOK\r\n")

        message = phone.sms.read_message(3, storage="ME")

        assert message.status == MessageStatus.RECEIVED_UNREAD
        assert mock_transport.written[-3:] == ['AT+CPMS="ME"\r', "AT+CMGF=0\r", "AT+CMGR=3\r"]
        assert not phone.session.gate.is_held()

    def test_delete_message_from_storage(self, phone, mock_transport):
        mock_transport.add_response('\r\n+CPMS: "SM",1,30,"SM",1,30,"SM",1,30\r\n\r\nOK\r\n')
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        phone.sms.delete_message(1, storage="SM")

        assert mock_transport.written[-3:] == ['AT+CPMS="SM"\r', "AT+CMGF=0\r", "AT+CMGD=1\r"]

    def test_unknown_storage(self, phone, mock_transport):
        """Test that a rejected storage stops the operation."""
        mock_transport.add_response("\r\n+CMS ERROR: 302\r\n")

        with pytest.raises(MessageServiceError):
            phone.sms.read_message(1, storage="XX")

        assert mock_transport.written[-1] == 'AT+CPMS="XX"\r'
        assert not phone.session.gate.is_held()

    def test_select_read_storage(self, phone, mock_transport):
        mock_transport.add_response("\r\n+CPMS: 4,30,4,30,4,30\r\n\r\nOK\r\n")

        status = phone.sms.select_read_storage("SM")

        assert status == MemoryStatus(used=4, total=30)

    def test_get_message_memory_status(self, phone, mock_transport):
        mock_transport.add_response('\r\n+CPMS: "ME",10,100,"SM",2,30,"ME",10,100\r\n\r\nOK\r\n')

        memory = phone.sms.get_message_memory_status()

        assert mock_transport.written[-1] == "AT+CPMS?\r"
        assert memory.read == MemoryStatus(used=10, total=100, storage="ME")
        assert memory.write == MemoryStatus(used=2, total=30, storage="SM")
        assert memory.receive.storage == "ME"

    def test_list_messages(self, phone, mock_transport):
        first = "07911326040000F0040B911326880736F4000099309251619580" + "05E8329BFD06"
        second = "07911326040000F0040B911326880736F4000099309251619580" + "03C8329B"
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response(
            f"\r\n+CMGL: 1,0,,24\r\n{first}\r\n+CMGL: 4,1,,22\r\n{second}\r\n\r\nOK\r\n"
        )

        messages = phone.sms.list_messages()

        assert mock_transport.written[-1] == "AT+CMGL=4\r"
        assert [m.index for m in messages] == [1, 4]
        assert messages[0].status == MessageStatus.RECEIVED_UNREAD
        assert messages[1].status == MessageStatus.RECEIVED_READ
        assert messages[1].data == second

    def test_list_messages_empty(self, phone, mock_transport):
        mock_transport.add_response('\r\n+CPMS: 0,30,0,30,0,30\r\n\r\nOK\r\n')
        mock_transport.add_response("\r\nOK\r\n")
        mock_transport.add_response("\r\nOK\r\n")

        messages = phone.sms.list_messages(MessageStatus.RECEIVED_UNREAD, storage="SM")

        assert messages == []
        assert mock_transport.written[-3:] == ['AT+CPMS="SM"\r', "AT+CMGF=0\r", "AT+CMGL=0\r"]


class TestParsers:
    """Test SMS response parsing."""

    def test_parse_cmgl_with_alpha(self):
        messages = SMSParser.parse_cmgl_pdu(['+CMGL: 2,3,"Bob",12', "0011000B91"])

        assert messages[0].alpha == "Bob"
        assert messages[0].status == MessageStatus.STORED_SENT

    def test_parse_cmgl_skips_malformed_header(self):
        messages = SMSParser.parse_cmgl_pdu(["+CMGL: bad", "+CMGL: 5,1,,10", "0011"])

        assert [m.index for m in messages] == [5]

    def test_parse_cpms_read_storage_only(self):
        memory = SMSParser.parse_cpms(["+CPMS: 7,20"])

        assert memory.read == MemoryStatus(used=7, total=20)
        assert memory.write is None
        assert memory.receive is None

    def test_parse_cpms_missing(self):
        with pytest.raises(ParseError):
            SMSParser.parse_cpms(["OK"])
