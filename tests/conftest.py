"""
Pytest configuration and fixtures.

Provides shared test fixtures for gsmlink tests.
"""

import pytest
import logging

from gsmlink.core import MockTransport
from gsmlink import GsmPhone


# Enable logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture
def mock_transport():
    """
    Create a MockTransport instance for testing.

    Example:
        def test_something(mock_transport):
            mock_transport.add_response("\\r\\nOK\\r\\n")
            # ... test code ...
    """
    transport = MockTransport()
    yield transport
    transport.close()


@pytest.fixture
def phone(mock_transport):
    """
    Create an open GsmPhone instance with MockTransport.

    Short timeouts keep failing exchanges fast; the connection check period
    is long enough that no periodic check runs during a test.

    Example:
        def test_signal(phone, mock_transport):
            mock_transport.add_response("\\r\\n+CSQ: 24,99\\r\\n\\r\\nOK\\r\\n")
            signal = phone.network.get_signal_quality()
            assert signal.rssi == 24
    """
    phone_instance = GsmPhone(
        transport=mock_transport,
        timeout=100,
        receive_timeout=0.2,
        shutdown_timeout=2.0
    )
    phone_instance.open()
    yield phone_instance
    phone_instance.close()


@pytest.fixture
def mock_signal_response():
    """Mock response for AT+CSQ command."""
    return "\r\n+CSQ: 24,99\r\n\r\nOK\r\n"


@pytest.fixture
def mock_operator_response():
    """Mock response for AT+COPS? command."""
    return '\r\n+COPS: 0,0,"Vodafone.de",0\r\n\r\nOK\r\n'
