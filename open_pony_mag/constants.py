"""
constants.py - MLX90393 protocol constants

Command opcodes, status byte bits, register indexes and the enumerated
settings of the Melexis MLX90393 3-axis magnetometer.

I2C connections:
- VIN -> 3.3V
- GND -> GND
- SCL -> GP5
- SDA -> GP4
- A0/A1 -> GND (0x0C)
"""

from micropython import const

# I2C addresses (A1/A0 strapping)
MLX90393_ADDR_DEFAULT = const(0x0C)
MLX90393_ADDR_ALT = const(0x18)       # "-011" variants

# Command opcodes (upper nibble)
CMD_NOP = const(0x00)
CMD_START_BURST = const(0x10)         # SB | axes
CMD_START_SINGLE = const(0x30)        # SM | axes
CMD_READ_MEASUREMENT = const(0x40)    # RM | axes
CMD_READ_REGISTER = const(0x50)
CMD_WRITE_REGISTER = const(0x60)
CMD_EXIT = const(0x80)
CMD_RESET = const(0xF0)

# Axis mask bits (lower nibble of SB/SM/RM)
AXIS_T = const(0x01)
AXIS_X = const(0x02)
AXIS_Y = const(0x04)
AXIS_Z = const(0x08)
AXIS_ALL = const(0x0E)                # X | Y | Z, no temperature
AXIS_MASK = const(0x0F)

# Measurement order on the wire
AXES_XYZ = (AXIS_X, AXIS_Y, AXIS_Z)

AXIS_NAMES = {
    AXIS_T: 'T',
    AXIS_X: 'X',
    AXIS_Y: 'Y',
    AXIS_Z: 'Z',
}

# Status byte
STATUS_BURST = const(0x80)
STATUS_WOC = const(0x40)
STATUS_SM = const(0x20)
STATUS_ERROR = const(0x10)
STATUS_SED = const(0x08)              # single error detection, axis mask rejected
STATUS_RESET = const(0x04)
STATUS_BYTES_AVAILABLE = const(0x03)  # D1/D0, masked off by transceive

# Register indexes (shifted left by 2 in commands)
CONF1 = const(0x00)
CONF2 = const(0x01)
CONF3 = const(0x02)
CONF4 = const(0x03)
REGISTER_SHIFT = const(2)

# Gain (GAIN_SEL)
GAIN_5X = const(0)
GAIN_4X = const(1)
GAIN_3X = const(2)
GAIN_2_5X = const(3)
GAIN_2X = const(4)
GAIN_1_67X = const(5)
GAIN_1_33X = const(6)
GAIN_1X = const(7)

# Resolution (RES_X / RES_Y / RES_Z)
RES_16 = const(0)
RES_17 = const(1)
RES_18 = const(2)                     # offset encoded, centre 0x8000
RES_19 = const(3)                     # offset encoded, centre 0x4000

RES_18_OFFSET = const(0x8000)
RES_19_OFFSET = const(0x4000)

# Digital filter (DIG_FILT)
FILTER_0 = const(0)
FILTER_1 = const(1)
FILTER_2 = const(2)
FILTER_3 = const(3)
FILTER_4 = const(4)
FILTER_5 = const(5)
FILTER_6 = const(6)
FILTER_7 = const(7)

# Oversampling (OSR)
OSR_0 = const(0)
OSR_1 = const(1)
OSR_2 = const(2)
OSR_3 = const(3)

# Burst rate field: units of 20 ms, 6 bits
BURST_RATE_STEP_MS = const(20)
BURST_RATE_MAX = const(0x3F)

# Timing (ms)
RESET_DELAY_MS = const(5)
# The tconv table under-predicts actual completion; keep until re-characterized
CONVERSION_MARGIN_MS = const(10)

# Driver-side view of the device mode
MODE_IDLE = const(0)
MODE_BURST = const(1)
MODE_SINGLE_MEASUREMENT = const(2)

MODE_NAMES = {
    None: 'Unknown',
    MODE_IDLE: 'Idle',
    MODE_BURST: 'Burst',
    MODE_SINGLE_MEASUREMENT: 'Single Measurement',
}

# Power-on defaults written by MLX90393.initialize()
DEFAULT_GAIN = GAIN_1X
DEFAULT_RESOLUTION = RES_16
DEFAULT_FILTER = FILTER_7
DEFAULT_OVERSAMPLING = OSR_3

__all__ = [name for name in dir() if name.isupper()]
