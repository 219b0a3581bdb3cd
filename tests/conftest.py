"""
Test doubles for the MLX90393 bus.

FakeMLX90393 sits where the bus collaborator goes and answers commands
like the sensor would, recording every command it sees. FakeI2C stands
in for busio.I2C underneath adafruit_bus_device.
"""

import pytest

from open_pony_mag.constants import (
    MLX90393_ADDR_DEFAULT, AXES_XYZ, AXIS_X, AXIS_Y, AXIS_Z,
    CMD_EXIT, CMD_RESET, CMD_READ_REGISTER, CMD_WRITE_REGISTER,
    CMD_START_BURST, CMD_START_SINGLE, CMD_READ_MEASUREMENT,
    STATUS_BURST, STATUS_SM, STATUS_RESET, STATUS_ERROR,
    CONF1, CONF2, CONF3, CONF4,
)
from open_pony_mag.mlx90393 import MLX90393


class FakeMLX90393:
    """Register-level stand-in for the sensor behind the bus collaborator"""

    def __init__(self, address=MLX90393_ADDR_DEFAULT):
        self.address = address
        self.registers = {CONF1: 0x007C, CONF2: 0x0000, CONF3: 0x0000, CONF4: 0x0000}
        self.measurement = {AXIS_X: b'\x00\x00', AXIS_Y: b'\x00\x00', AXIS_Z: b'\x00\x00'}
        # opcode -> status byte forced into the reply
        self.status_for = {}
        self.fail_write = False
        self.short_read = False

        self.writes = []
        self.reads = []
        self.sleeps = []

        self.burst = False
        self.single = False
        self._reply = b''

    # Bus collaborator -------------------------------------------------

    def write(self, address, data):
        assert address == self.address
        self.writes.append(bytes(data))
        if self.fail_write:
            return False
        self._reply = self._handle(bytes(data))
        return True

    def request_and_read(self, address, count):
        assert address == self.address
        self.reads.append(count)
        reply = self._reply.ljust(count, b'\x00')[:count]
        if self.short_read:
            return reply[:-1]
        return reply

    def sleep(self, seconds):
        self.sleeps.append(seconds)

    # Helpers ----------------------------------------------------------

    def count(self, opcode):
        return sum(1 for data in self.writes if data[0] & 0xF0 == opcode)

    def _mode_status(self):
        return (STATUS_BURST if self.burst else 0) | (STATUS_SM if self.single else 0)

    def _handle(self, data):
        opcode = data[0] & 0xF0
        axes = data[0] & 0x0F
        payload = b''

        if opcode == CMD_EXIT:
            self.burst = self.single = False
            status = 0x00
        elif opcode == CMD_RESET:
            self.burst = self.single = False
            status = STATUS_RESET
        elif opcode == CMD_READ_REGISTER:
            value = self.registers.get(data[1] >> 2, 0)
            payload = bytes([value >> 8, value & 0xFF])
            status = self._mode_status() | 0x01     # D1/D0 noise
        elif opcode == CMD_WRITE_REGISTER:
            self.registers[data[3] >> 2] = (data[1] << 8) | data[2]
            status = self._mode_status()
        elif opcode == CMD_START_BURST:
            self.burst = True
            status = STATUS_BURST
        elif opcode == CMD_START_SINGLE:
            self.single = True
            status = STATUS_SM
        elif opcode == CMD_READ_MEASUREMENT:
            payload = b''.join(self.measurement[axis] for axis in AXES_XYZ if axes & axis)
            status = self._mode_status() | 0x03
            self.single = False
        else:
            status = STATUS_ERROR

        status = self.status_for.get(opcode, status)
        return bytes([status]) + payload


class FakeI2C:
    """Minimal busio.I2C for adafruit_bus_device"""

    def __init__(self):
        self.locked = False
        self.nak = False
        self.written = []
        self.to_read = b''

    def try_lock(self):
        if self.locked:
            return False
        self.locked = True
        return True

    def unlock(self):
        self.locked = False

    def writeto(self, address, buffer, *, start=0, end=None):
        if self.nak:
            raise OSError(19, "No such device")
        end = len(buffer) if end is None else end
        self.written.append((address, bytes(buffer[start:end])))

    def readfrom_into(self, address, buffer, *, start=0, end=None):
        end = len(buffer) if end is None else end
        wanted = end - start
        if len(self.to_read) < wanted:
            raise OSError(5, "Input/output error")
        buffer[start:end] = self.to_read[:wanted]
        self.to_read = self.to_read[wanted:]


@pytest.fixture
def bus():
    return FakeMLX90393()


@pytest.fixture
def sensor(bus):
    return MLX90393(bus)


@pytest.fixture
def ready_sensor(sensor):
    assert sensor.initialize()
    return sensor


@pytest.fixture
def fake_i2c():
    return FakeI2C()
