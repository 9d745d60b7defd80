"""
Tests for transport layer.
"""

import time

import pytest
from gsmlink.core import MockTransport, SerialTransport
from gsmlink.exceptions import TransportError


def test_mock_transport_write():
    """Test MockTransport write operation."""
    transport = MockTransport()
    transport.open()

    written = transport.write("AT+CSQ\r")
    assert written == 7
    assert transport.written == ["AT+CSQ\r"]

    transport.close()


def test_mock_transport_scripted_response():
    """Test that a write releases the next scripted response."""
    transport = MockTransport()
    transport.open()
    transport.add_response("\r\n+CSQ: 24,99\r\n", "\r\nOK\r\n")

    assert transport.read_existing() == ""

    transport.write("AT+CSQ\r")
    assert transport.in_waiting() > 0
    assert transport.read_existing() == "\r\n+CSQ: 24,99\r\n\r\nOK\r\n"
    assert transport.in_waiting() == 0

    transport.close()


def test_mock_transport_chunk_interval():
    """Test that chunks become readable one interval apart."""
    transport = MockTransport()
    transport.open()
    transport.add_response("first", "second", interval=0.2)

    transport.write("AT\r\n")
    assert transport.read_existing() == "first"
    assert transport.read_existing() == ""

    time.sleep(0.3)
    assert transport.read_existing() == "second"

    transport.close()


def test_mock_transport_answers_probe():
    """Test that the probe gets OK without consuming the script."""
    transport = MockTransport()
    transport.open()
    transport.add_response("\r\nERROR\r\n")

    transport.write("AT\r")
    assert transport.read_existing() == "\r\nOK\r\n"
    assert transport.probe_count == 1

    transport.write("AT+FOO\r")
    assert transport.read_existing() == "\r\nERROR\r\n"

    transport.close()


def test_mock_transport_disconnected_ignores_probe():
    """Test that a disconnected phone stays silent."""
    transport = MockTransport(connected=False)
    transport.open()

    transport.write("AT\r")
    assert transport.read_existing() == ""

    transport.close()


def test_mock_transport_echo():
    """Test that the echo precedes the response."""
    transport = MockTransport(echo=True)
    transport.open()
    transport.add_response("\r\nOK\r\n")

    transport.write("ATE1\r")
    assert transport.read_existing() == "ATE1\r\r\nOK\r\n"

    transport.close()


def test_mock_transport_inject():
    """Test injecting unsolicited text."""
    transport = MockTransport()
    transport.open()

    transport.inject('\r\n+CMTI: "SM",1\r\n', delay=0.1)
    assert transport.in_waiting() == 0

    time.sleep(0.2)
    assert transport.read_existing() == '\r\n+CMTI: "SM",1\r\n'

    transport.close()


def test_mock_transport_discard_buffers():
    """Test that discarding drops readable text only."""
    transport = MockTransport()
    transport.open()

    transport.inject("now")
    transport.inject("later", delay=0.1)
    transport.discard_buffers()
    assert transport.read_existing() == ""

    time.sleep(0.2)
    assert transport.read_existing() == "later"

    transport.close()


def test_mock_transport_failures():
    """Test simulated read and write failures."""
    transport = MockTransport()

    with pytest.raises(TransportError):
        transport.write("AT\r")

    transport.open()
    transport.fail_reads = True
    with pytest.raises(TransportError):
        transport.read_existing()

    transport.fail_writes = True
    with pytest.raises(TransportError):
        transport.write("AT\r")

    transport.close()


def test_mock_transport_double_open():
    """Test that opening twice fails."""
    transport = MockTransport()
    transport.open()

    with pytest.raises(TransportError):
        transport.open()

    transport.close()
    assert transport.is_open() is False


def test_serial_transport_configuration():
    """Test serial port settings without opening the port."""
    transport = SerialTransport("/dev/ttyUSB0", baudrate=9600, timeout=0.5)

    assert transport.is_open() is False
    assert transport._serial.port == "/dev/ttyUSB0"
    assert transport._serial.baudrate == 9600
    assert transport._serial.bytesize == 8
    assert transport._serial.stopbits == 1
    assert transport._serial.timeout == 0.5


def test_serial_transport_open_failure():
    """Test that a missing port raises TransportError."""
    transport = SerialTransport("/dev/does-not-exist-gsmlink")

    with pytest.raises(TransportError):
        transport.open()

    assert transport.is_open() is False
