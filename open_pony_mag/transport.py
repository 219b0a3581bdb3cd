"""
transport.py - MLX90393 bus transactions

Every exchange with the MLX90393 is a write of a command (plus payload)
followed by a read of one status byte and the reply payload. The bus
itself is a collaborator with three operations:

    write(address, data) -> bool
    request_and_read(address, count) -> bytes   (short on failure)
    sleep(seconds)

I2CTransport provides them on top of a busio.I2C bus.
"""

import time

from adafruit_bus_device.i2c_device import I2CDevice

from .constants import (
    STATUS_BURST, STATUS_WOC, STATUS_SM, STATUS_ERROR, STATUS_SED,
    STATUS_RESET, STATUS_BYTES_AVAILABLE,
)

STATUS_FLAGS = (
    (STATUS_BURST, 'BURST'),
    (STATUS_WOC, 'WOC'),
    (STATUS_SM, 'SM'),
    (STATUS_ERROR, 'ERROR'),
    (STATUS_SED, 'SED'),
    (STATUS_RESET, 'RS'),
)


def transceive(bus, address, tx, rx_len=0, inter_delay_ms=0):
    """
    Perform one write/read transaction with the sensor

    Args:
        bus: Bus collaborator (write / request_and_read / sleep)
        address: I2C address
        tx: Command byte plus payload
        rx_len: Reply bytes expected, not counting the status byte
        inter_delay_ms: Wait between the write and the read

    Returns:
        tuple: (status, rx) with the D1/D0 bits masked off the status.
            On transport failure status is STATUS_ERROR and rx is None.
    """
    if not bus.write(address, bytes(tx)):
        return STATUS_ERROR, None

    if inter_delay_ms:
        bus.sleep(inter_delay_ms / 1000)

    # Status byte always comes first
    count = rx_len + 1
    data = bus.request_and_read(address, count)
    if data is None or len(data) < count:
        return STATUS_ERROR, None

    status = data[0] & ~STATUS_BYTES_AVAILABLE & 0xFF
    return status, bytes(data[1:count])


def decode_status(status):
    """
    Names of the flags set in a (masked) status byte

    Returns:
        list: e.g. ['SM', 'ERROR']
    """
    if status is None:
        return []
    return [name for bit, name in STATUS_FLAGS if status & bit]


class I2CTransport:
    """
    Bus collaborator for busio.I2C (or Blinka on Linux)

    Example usage:
        i2c = busio.I2C(board.GP5, board.GP4)
        bus = I2CTransport(i2c)
        sensor = MLX90393(bus)
    """

    def __init__(self, i2c):
        """
        Args:
            i2c: I2C bus object
        """
        self.i2c = i2c
        self._devices = {}

    def _device(self, address):
        device = self._devices.get(address)
        if device is None:
            device = I2CDevice(self.i2c, address, probe=False)
            self._devices[address] = device
        return device

    def write(self, address, data):
        try:
            with self._device(address) as i2c:
                i2c.write(data)
        except OSError:
            return False
        return True

    def request_and_read(self, address, count):
        buffer = bytearray(count)
        try:
            with self._device(address) as i2c:
                i2c.readinto(buffer)
        except OSError:
            return b''
        return bytes(buffer)

    def sleep(self, seconds):
        time.sleep(seconds)
