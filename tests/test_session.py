"""
Tests for session lifecycle and connection state.
"""

import logging
import threading
import time

import pytest
from gsmlink import GsmPhone, MemoryLocation, SessionState
from gsmlink.core import MockTransport
from gsmlink.exceptions import NotConnectedError, NotOpenError, ResponseTimeoutError
from gsmlink import phone as phone_module
from gsmlink.types import EventKind, ShortMessage


def make_phone(transport, **settings):
    settings.setdefault("timeout", 100)
    settings.setdefault("receive_timeout", 0.2)
    settings.setdefault("shutdown_timeout", 2.0)
    return GsmPhone(transport=transport, **settings)


def test_requires_port_or_transport():
    with pytest.raises(ValueError):
        GsmPhone()


def test_open_with_connected_phone():
    """Test that open() checks the connection before returning."""
    transport = MockTransport()
    phone = make_phone(transport)

    assert phone.state == SessionState.CLOSED
    phone.open()

    assert phone.is_open()
    assert phone.is_connected()
    assert phone.state == SessionState.OPEN_CONNECTED
    assert transport.probe_count == 1
    phone.verify_valid_connection()

    phone.close()
    assert phone.state == SessionState.CLOSED
    assert not transport.is_open()


def test_open_without_phone():
    """Test an open port with nothing answering."""
    transport = MockTransport(connected=False)
    phone = make_phone(transport)
    phone.open()

    assert phone.is_open()
    assert not phone.is_connected()
    assert phone.state == SessionState.OPEN_DISCONNECTED
    with pytest.raises(NotConnectedError):
        phone.verify_valid_connection()

    phone.close()


def test_verify_closed_phone():
    phone = make_phone(MockTransport())

    with pytest.raises(NotOpenError):
        phone.verify_valid_connection()


def test_close_is_idempotent():
    """Test that closing a closed phone does nothing."""
    transport = MockTransport()
    phone = make_phone(transport)
    disconnects = []
    phone.subscribe(EventKind.PHONE_DISCONNECTED, disconnects.append)

    phone.close()
    phone.open()
    phone.close()
    phone.close()

    assert phone.state == SessionState.CLOSED
    assert len(disconnects) == 1


def test_reopen():
    """Test that a closed phone can be opened again."""
    transport = MockTransport()
    phone = make_phone(transport)
    connects = []
    phone.subscribe(EventKind.PHONE_CONNECTED, connects.append)

    phone.open()
    phone.close()
    phone.open()
    assert phone.is_connected()
    phone.close()

    assert len(connects) == 2


def test_context_manager():
    transport = MockTransport()

    with make_phone(transport) as phone:
        assert phone.is_open()

    assert not phone.is_open()
    assert not transport.is_open()


def test_operations_after_close_raise():
    """Test that a closed session refuses commands."""
    transport = MockTransport()
    phone = make_phone(transport)
    phone.open()
    phone.close()

    with pytest.raises(NotOpenError):
        phone.device.request_manufacturer()
    with pytest.raises(NotOpenError):
        phone.get_protocol()


def test_idle_indication_is_dispatched(phone, mock_transport):
    """Test an indication arriving while no command runs."""
    received = []
    delivered = threading.Event()

    def on_message(event):
        received.append(event.payload)
        delivered.set()

    phone.subscribe(EventKind.MESSAGE_RECEIVED, on_message)
    mock_transport.inject('\r\n+CDSI: "SR",4\r\n')

    assert delivered.wait(2.0)
    assert received[0].indication == MemoryLocation(storage="SR", index=4)
    assert "STATUS-REPORT" in received[0].description


def test_command_after_idle_indication(phone, mock_transport):
    """Test that an idle indication does not cut short the next exchange."""
    mock_transport.inject('\r\n+CMTI: "SM",3\r\n')
    time.sleep(0.3)
    assert phone.pop_message().indication == MemoryLocation(storage="SM", index=3)

    # The phone answers only after the command has been written
    mock_transport.add_response("", "\r\n+CSQ: 24,99\r\n\r\nOK\r\n", interval=0.05)

    with phone.raw_access() as protocol:
        response = protocol.exec_and_receive_once("AT+CSQ")

    assert "+CSQ: 24,99" in response


def test_partial_pdu_indication_is_completed(phone, mock_transport):
    """Test that the worker waits for the rest of an inline PDU."""
    pdu = "00" + "11" * 5
    mock_transport.inject("\r\n+CMT: ,5\r\n" + pdu[:4])
    mock_transport.inject(pdu[4:] + "\r\n", delay=0.05)

    deadline = time.monotonic() + 2.0
    message = None
    while message is None and time.monotonic() < deadline:
        message = phone.pop_message()
        time.sleep(0.02)

    assert message is not None
    assert message.indication == ShortMessage(alpha="", length=5, data=pdu)


def test_read_failure_is_survived(phone, mock_transport, mock_signal_response):
    """Test that a failing read does not stop the worker."""
    mock_transport.fail_reads = True
    mock_transport.inject("garbage")
    time.sleep(0.2)
    mock_transport.fail_reads = False

    assert phone.session.worker.is_alive()

    mock_transport.add_response(mock_signal_response)
    assert phone.network.get_signal_quality().rssi == 24


def test_write_failure_surfaces_as_timeout(phone, mock_transport):
    """Test that a failed write still releases the caller."""
    mock_transport.fail_writes = True

    with pytest.raises(ResponseTimeoutError):
        phone.device.request_model()

    assert phone.session.worker.is_alive()
    assert not phone.session.gate.is_held()


def test_log_lines_are_published(phone):
    """Test that package log records reach log-line subscribers."""
    lines = []
    delivered = threading.Event()

    def on_line(event):
        lines.append(event.payload.text)
        if "gate test line" in event.payload.text:
            delivered.set()

    phone.subscribe(EventKind.LOGLINE_ADDED, on_line)
    logging.getLogger("gsmlink.tests").info("gate test line")

    assert delivered.wait(2.0)
    assert any("[gsmphone] gate test line" in line for line in lines)


def test_log_lines_stay_with_their_session(phone):
    """Test that records of one session's traffic do not reach another."""
    other = make_phone(MockTransport())
    other.open()
    lines = {"phone": [], "other": []}
    done = {"phone": threading.Event(), "other": threading.Event()}

    def collector(name):
        def on_line(event):
            lines[name].append(event.payload.text)
            if "shared test line" in event.payload.text:
                done[name].set()
        return on_line

    phone.subscribe(EventKind.LOGLINE_ADDED, collector("phone"))
    other.subscribe(EventKind.LOGLINE_ADDED, collector("other"))
    try:
        log = logging.getLogger("gsmlink.tests")
        with phone.raw_access():
            log.info("owned test line")
        log.info("shared test line")

        assert done["phone"].wait(2.0)
        assert done["other"].wait(2.0)
    finally:
        other.close()

    assert any("owned test line" in line for line in lines["phone"])
    assert not any("owned test line" in line for line in lines["other"])


def test_pin_is_not_logged(phone, mock_transport, caplog):
    """Test that entering the PIN keeps it out of the log."""
    mock_transport.add_response("\r\nOK\r\n")

    with caplog.at_level(logging.DEBUG, logger="gsmlink"):
        phone.device.enter_pin("4711")

    assert mock_transport.written[-1] == 'AT+CPIN="4711"\r'
    assert "4711" not in caplog.text


def test_version_logged_once(caplog, monkeypatch):
    """Test that only the first open in a process logs the version."""
    monkeypatch.setattr(phone_module, "_version_logged", False)

    with caplog.at_level(logging.INFO, logger="gsmlink"):
        for _ in range(2):
            phone = make_phone(MockTransport())
            phone.open()
            phone.close()

    assert caplog.text.count("gsmlink version") == 1
