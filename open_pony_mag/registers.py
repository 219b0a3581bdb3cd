"""
registers.py - MLX90393 register bit-fields

Each setting lives in a bit-field of one of the 16-bit CONF registers.
Packing and unpacking are pure functions, so the bit math can be checked
without a bus.
"""

from .constants import (
    AXIS_X, AXIS_Y, AXIS_Z, AXIS_NAMES,
    CMD_READ_REGISTER, CMD_WRITE_REGISTER,
    CONF1, CONF2, CONF3, REGISTER_SHIFT,
)


class RegisterField:
    """A named group of bits inside a 16-bit register"""

    def __init__(self, name, register, shift, width):
        self.name = name
        self.register = register
        self.shift = shift
        self.width = width

    @property
    def mask(self):
        """Mask of the field bits in register position"""
        return ((1 << self.width) - 1) << self.shift

    @property
    def max_value(self):
        return (1 << self.width) - 1

    def check(self, value):
        """Raise ValueError if value does not fit the field"""
        if value < 0 or value > self.max_value:
            raise ValueError(f"{self.name}: {value} does not fit in {self.width} bit(s)")

    def pack(self, word, value):
        """
        Replace the field bits of a register word

        Args:
            word: Current 16-bit register value
            value: New field value

        Returns:
            int: Register value with the field replaced, other bits kept
        """
        self.check(value)
        return ((word & ~self.mask) | (int(value) << self.shift)) & 0xFFFF

    def unpack(self, word):
        """Extract the field value from a register word"""
        return (word & self.mask) >> self.shift

    def __repr__(self):
        return f"RegisterField({self.name}, reg=0x{self.register:02X}, shift={self.shift}, width={self.width})"


# CONF1
GAIN_SEL = RegisterField('GAIN_SEL', CONF1, 4, 3)

# CONF2
BURST_DATA_RATE = RegisterField('BURST_DATA_RATE', CONF2, 0, 6)
TRIG_INT_SEL = RegisterField('TRIG_INT_SEL', CONF2, 15, 1)

# CONF3
OSR = RegisterField('OSR', CONF3, 0, 2)
DIG_FILT = RegisterField('DIG_FILT', CONF3, 2, 3)
RES_X = RegisterField('RES_X', CONF3, 5, 2)
RES_Y = RegisterField('RES_Y', CONF3, 7, 2)
RES_Z = RegisterField('RES_Z', CONF3, 9, 2)

RESOLUTION_FIELDS = {
    AXIS_X: RES_X,
    AXIS_Y: RES_Y,
    AXIS_Z: RES_Z,
}


def resolution_field(axis):
    """Resolution field for a spatial axis; temperature has none"""
    try:
        return RESOLUTION_FIELDS[axis]
    except KeyError:
        name = AXIS_NAMES.get(axis, f"0x{axis:02X}")
        raise ValueError(f"No resolution setting for axis {name}") from None


def read_command(register):
    """RR command: opcode, register << 2"""
    return bytes([CMD_READ_REGISTER, (register << REGISTER_SHIFT) & 0xFF])


def write_command(register, value):
    """WR command: opcode, value high byte, value low byte, register << 2"""
    return bytes([
        CMD_WRITE_REGISTER,
        (value >> 8) & 0xFF,
        value & 0xFF,
        (register << REGISTER_SHIFT) & 0xFF,
    ])
