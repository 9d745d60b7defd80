"""
Tests for NetworkManager.
"""

import pytest
from gsmlink.types import AddressData, OperatorInfo, SignalQuality
from gsmlink.exceptions import ParseError


def test_get_signal_quality(phone, mock_transport, mock_signal_response):
    """Test getting signal quality."""
    mock_transport.add_response(mock_signal_response)

    signal = phone.network.get_signal_quality()

    assert isinstance(signal, SignalQuality)
    assert signal.rssi == 24
    assert signal.ber == 99
    assert signal.rssi_dbm == -65
    assert signal.is_valid


def test_get_signal_quality_unknown(phone, mock_transport):
    """Test an undetectable signal."""
    mock_transport.add_response("\r\n+CSQ: 99,99\r\n\r\nOK\r\n")

    signal = phone.network.get_signal_quality()

    assert signal.rssi_dbm is None
    assert not signal.is_valid


def test_get_signal_quality_garbled(phone, mock_transport):
    """Test that an unparseable response raises ParseError."""
    mock_transport.add_response("\r\n+CSQ: strong\r\n\r\nOK\r\n")

    with pytest.raises(ParseError):
        phone.network.get_signal_quality()


def test_get_current_operator(phone, mock_transport, mock_operator_response):
    """Test getting the current operator."""
    mock_transport.add_response(mock_operator_response)

    operator = phone.network.get_current_operator()

    assert operator == OperatorInfo(mode=0, format=0, oper="Vodafone.de", act=0)


def test_get_current_operator_without_act(phone, mock_transport):
    """Test an operator response without access technology."""
    mock_transport.add_response('\r\n+COPS: 0,2,"26202"\r\n\r\nOK\r\n')

    operator = phone.network.get_current_operator()

    assert operator.oper == "26202"
    assert operator.act is None


def test_get_current_operator_none(phone, mock_transport):
    """Test that no selected operator returns None."""
    mock_transport.add_response("\r\n+COPS: 0\r\n\r\nOK\r\n")

    assert phone.network.get_current_operator() is None


def test_get_smsc_address(phone, mock_transport):
    """Test getting the service centre address."""
    mock_transport.add_response('\r\n+CSCA: "+491710760000",145\r\n\r\nOK\r\n')

    address = phone.network.get_smsc_address()

    assert address == AddressData(address="+491710760000", type_of_address=145)
