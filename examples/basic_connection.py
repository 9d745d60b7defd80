"""
Basic connection example.

Demonstrates connecting to a phone, getting basic device information and
waiting for new message notifications.
"""

import logging
import time

from gsmlink import EventKind, GsmPhone, MessageIndicationSettings

# Replace with your serial port
PORT = "/dev/ttyUSB0"


def on_message(event):
    """Handle a new message notification."""
    print(f"\n[NEW MESSAGE] {event.payload.description}: {event.payload.indication}")


def on_connection_change(event):
    """Handle phone connect and disconnect."""
    print(f"\n[CONNECTION] {event.kind.value}")


def main():
    """Main function."""
    logging.basicConfig(level=logging.INFO)
    print("gsmlink - Basic Connection Example\n")

    # Connect to phone using context manager
    # This automatically opens and closes the port
    with GsmPhone(port=PORT, baudrate=19200) as phone:
        phone.subscribe(EventKind.PHONE_CONNECTED, on_connection_change)
        phone.subscribe(EventKind.PHONE_DISCONNECTED, on_connection_change)
        phone.subscribe(EventKind.MESSAGE_RECEIVED, on_message)

        phone.verify_valid_connection()
        print("Connected to phone!\n")

        # Get device information
        print("=== Device Information ===")
        print(f"Manufacturer: {phone.device.request_manufacturer()}")
        print(f"Model: {phone.device.request_model()}")
        print(f"Revision: {phone.device.request_revision()}")
        print(f"Serial number: {phone.device.request_serial_number()}")
        print(f"PIN status: {phone.device.get_pin_status().value}")

        print("\n=== Network ===")
        signal = phone.network.get_signal_quality()
        print(f"Signal: {signal.rssi_dbm} dBm")
        print(f"Operator: {phone.network.get_current_operator()}")

        # Announce new messages by storage location (+CMTI)
        phone.sms.set_message_indications(MessageIndicationSettings(mode=2, deliver_style=1))
        print("\nWaiting for messages (Ctrl+C to stop)...")

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nStopping...")

    print("\nConnection closed.")


if __name__ == "__main__":
    main()
