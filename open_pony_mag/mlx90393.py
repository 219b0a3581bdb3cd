"""
mlx90393.py - MLX90393 magnetometer driver for CircuitPython

Supports:
- 3-axis magnetometer, 8 gain settings, 16-19 bit resolution per axis
- Single measurement and burst modes
- Digital filter / oversampling configuration
- TRIG/INT pin function select

Hardware:
- Melexis MLX90393 3-axis Hall magnetometer
- I2C interface (command based, every reply starts with a status byte)

Failures on the bus or reported by the sensor come back as False, never
as exceptions. Values the protocol cannot represent (a resolution for the
temperature channel, a gain of 9) raise ValueError.

Not thread safe: one owner per handle.
"""

import struct
import time

from .constants import (
    MLX90393_ADDR_DEFAULT,
    CMD_EXIT, CMD_RESET, CMD_START_BURST, CMD_START_SINGLE, CMD_READ_MEASUREMENT,
    AXIS_T, AXIS_X, AXIS_Y, AXIS_Z, AXIS_ALL, AXIS_MASK, AXES_XYZ,
    STATUS_BURST, STATUS_WOC, STATUS_SM, STATUS_ERROR, STATUS_SED, STATUS_RESET,
    CONF1, RES_18, RES_19, RES_18_OFFSET, RES_19_OFFSET,
    BURST_RATE_STEP_MS, BURST_RATE_MAX, RESET_DELAY_MS, CONVERSION_MARGIN_MS,
    MODE_IDLE, MODE_BURST, MODE_SINGLE_MEASUREMENT, MODE_NAMES,
    DEFAULT_GAIN, DEFAULT_RESOLUTION, DEFAULT_FILTER, DEFAULT_OVERSAMPLING,
)
from .debug import OpenPonyDebug
from .registers import (
    GAIN_SEL, BURST_DATA_RATE, TRIG_INT_SEL, OSR, DIG_FILT,
    resolution_field, read_command, write_command,
)
from .tables import lsb_for, conversion_time_ms
from .transport import transceive, decode_status

# Unified sensor metadata
SENSOR_NAME = 'MLX90393'
SENSOR_VERSION = 1
SENSOR_TYPE = 'magnetic_field'
SENSOR_MIN_UT = -50000.0          # -50 gauss
SENSOR_MAX_UT = 50000.0           # +50 gauss
SENSOR_RESOLUTION_UT = 0.15       # 1x gain, 16-bit, XY


def _to_int16(value):
    """Wrap to a signed 16-bit value"""
    return ((value + 0x8000) & 0xFFFF) - 0x8000


class MLX90393:
    """
    MLX90393 magnetometer driver

    Example usage:
        bus = I2CTransport(busio.I2C(board.GP5, board.GP4))
        mag = MLX90393(bus)
        if mag.initialize():
            ok, mx, my, mz = mag.read_data()

    The handle caches filter, oversampling and per-axis resolution as the
    values it last wrote; their getters never touch the bus. Gain is cached
    for conversion but get_gain() reads it back from the sensor.
    """

    def __init__(self, bus, address=MLX90393_ADDR_DEFAULT, debug=False, sensor_id=0):
        """
        Create a handle (no bus traffic until initialize())

        Args:
            bus: Bus collaborator, e.g. I2CTransport
            address: I2C address
            debug: Print every transaction
            sensor_id: ID reported by get_sensor()/get_event()
        """
        self.bus = bus
        self.address = address
        self.sensor_id = sensor_id

        # None until a transition has been confirmed by the sensor
        self.mode = None
        self.last_status = None
        self.conversion_margin_ms = CONVERSION_MARGIN_MS

        self._gain = DEFAULT_GAIN
        self._resolution = {
            AXIS_X: DEFAULT_RESOLUTION,
            AXIS_Y: DEFAULT_RESOLUTION,
            AXIS_Z: DEFAULT_RESOLUTION,
        }
        self._filter = DEFAULT_FILTER
        self._osr = DEFAULT_OVERSAMPLING

        self._debug = OpenPonyDebug('MLX90393', debug)

    # ------------------------------------------------------------------
    # Transactions and registers
    # ------------------------------------------------------------------

    def _transceive(self, tx, rx_len=0, inter_delay_ms=0):
        status, rx = transceive(self.bus, self.address, tx, rx_len, inter_delay_ms)
        self.last_status = status
        self._debug.debug_message(
            f"tx={bytes(tx).hex()} status=0x{status:02X} {decode_status(status)} "
            f"rx={rx.hex() if rx else '-'}"
        )
        return status, rx

    def read_register(self, register):
        """
        Read a 16-bit register

        Args:
            register: Register index (CONF1..CONF4 or any memory address)

        Returns:
            tuple: (True, value) or (False, None)
        """
        status, rx = self._transceive(read_command(register), 2)
        if status & STATUS_ERROR:
            self._debug.debug_message(f"Read of register 0x{register:02X} failed")
            return False, None
        return True, struct.unpack('>H', rx)[0]

    def write_register(self, register, value):
        """
        Write a 16-bit register

        Returns:
            bool: True if the sensor accepted the write
        """
        if value < 0 or value > 0xFFFF:
            raise ValueError(f"Register value 0x{value:X} is not 16-bit")
        status, _ = self._transceive(write_command(register, value))
        if status & STATUS_ERROR:
            self._debug.debug_message(f"Write of register 0x{register:02X} failed")
            return False
        return True

    def _update_field(self, field, value):
        """Read-modify-write of one bit-field"""
        field.check(value)
        ok, data = self.read_register(field.register)
        if not ok:
            return False
        return self.write_register(field.register, field.pack(data, value))

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_gain(self, gain):
        """
        Set the analog gain (GAIN_5X .. GAIN_1X)

        Returns:
            bool: True on success; the cached gain only changes on success
        """
        if not self._update_field(GAIN_SEL, gain):
            return False
        self._gain = gain
        return True

    def get_gain(self):
        """
        Read the gain back from CONF1

        Returns:
            int: GAIN_SEL value, or None if the read failed
        """
        ok, data = self.read_register(CONF1)
        if not ok:
            return None
        return GAIN_SEL.unpack(data)

    def set_resolution(self, axis, resolution):
        """
        Set the resolution of one axis

        Args:
            axis: AXIS_X, AXIS_Y or AXIS_Z
            resolution: RES_16 .. RES_19

        Returns:
            bool: True on success
        """
        field = resolution_field(axis)
        if not self._update_field(field, resolution):
            return False
        self._resolution[axis] = resolution
        return True

    def get_resolution(self, axis):
        """Cached resolution of one axis"""
        resolution_field(axis)
        return self._resolution[axis]

    def set_filter(self, digital_filter):
        """Set the digital filter (FILTER_0 .. FILTER_7)"""
        if not self._update_field(DIG_FILT, digital_filter):
            return False
        self._filter = digital_filter
        return True

    def get_filter(self):
        return self._filter

    def set_oversampling(self, oversampling):
        """Set the oversampling ratio (OSR_0 .. OSR_3)"""
        if not self._update_field(OSR, oversampling):
            return False
        self._osr = oversampling
        return True

    def get_oversampling(self):
        return self._osr

    def set_trigger_interrupt(self, interrupt):
        """
        Select the TRIG/INT pin function

        Args:
            interrupt: True for INT (data ready output), False for TRIG input
        """
        return self._update_field(TRIG_INT_SEL, 1 if interrupt else 0)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    @property
    def mode_name(self):
        return MODE_NAMES.get(self.mode, 'Unknown')

    def _check_axes(self, axes):
        if not axes or axes & ~AXIS_MASK:
            raise ValueError(f"Invalid axis mask 0x{axes:02X}")
        return axes

    def exit_mode(self):
        """
        Leave burst / single measurement / wake-on-change mode

        Returns:
            bool: True if the sensor reports no active mode and no error
        """
        status, _ = self._transceive(bytes([CMD_EXIT]))
        if status & (STATUS_BURST | STATUS_SM | STATUS_WOC | STATUS_ERROR):
            return False
        self.mode = MODE_IDLE
        return True

    def reset(self):
        """
        Soft reset

        Returns:
            bool: True if the status is exactly the reset flag
        """
        status, _ = self._transceive(bytes([CMD_RESET]), inter_delay_ms=RESET_DELAY_MS)
        if status != STATUS_RESET:
            return False
        self.mode = MODE_IDLE
        return True

    def start_burst(self, axes=AXIS_ALL):
        """
        Start burst mode on the given axes

        Returns:
            bool: True if burst mode is active and the axis mask was accepted
        """
        axes = self._check_axes(axes)
        status, _ = self._transceive(bytes([CMD_START_BURST | axes]))
        if not status & STATUS_BURST:
            return False
        if status & STATUS_SED:
            return False
        self.mode = MODE_BURST
        return True

    def set_burst_rate(self, delay_ms):
        """
        Set the burst cadence

        Args:
            delay_ms: Time between burst measurements, 20 ms steps,
                clamped to 0..1260 ms

        Returns:
            bool: True on success
        """
        steps = max(0, min(int(delay_ms) // BURST_RATE_STEP_MS, BURST_RATE_MAX))
        return self._update_field(BURST_DATA_RATE, steps)

    def start_single_measurement(self, axes=AXIS_ALL):
        """
        Trigger one measurement

        A sensor already waiting on a single measurement answers with the
        bare SM status; that counts as success.

        Returns:
            bool: True on success
        """
        axes = self._check_axes(axes)
        status, _ = self._transceive(bytes([CMD_START_SINGLE | axes]))
        if not (status & STATUS_ERROR) or status == STATUS_SM:
            self.mode = MODE_SINGLE_MEASUREMENT
            return True
        return False

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def raw_to_physical(self, axis, raw):
        """
        Convert a raw reading to µT

        Args:
            axis: AXIS_X, AXIS_Y or AXIS_Z
            raw: Signed 16-bit value as read from the sensor

        Returns:
            float: Field in µT
        """
        resolution = self.get_resolution(axis)
        if resolution == RES_18:
            raw = _to_int16(raw - RES_18_OFFSET)
        elif resolution == RES_19:
            raw = _to_int16(raw - RES_19_OFFSET)
        return raw * lsb_for(self._gain, resolution, axis)

    def conversion_delay_ms(self):
        """Wait between trigger and readback for the cached filter/OSR"""
        return conversion_time_ms(self._filter, self._osr) + self.conversion_margin_ms

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    def _measurement_read(self):
        # The sensor drops back to idle once a single measurement is read
        if self.mode == MODE_SINGLE_MEASUREMENT:
            self.mode = MODE_IDLE

    def _selected_axes(self, axes, result):
        if axes & ~AXIS_MASK:
            raise ValueError(f"Invalid axis mask 0x{axes:02X}")
        if axes & AXIS_T:
            self._debug.debug_message("Temperature cannot be read as a magnetic axis")
            return None
        selected = [axis for axis in AXES_XYZ if axes & axis]
        if not selected:
            return None
        if len(selected) > len(result):
            self._debug.debug_message(
                f"Result buffer holds {len(result)} values, {len(selected)} requested"
            )
            return None
        return selected

    def read_measurement(self):
        """
        Read X, Y and Z without triggering

        Returns:
            tuple: (True, x, y, z) in µT, or (False, None, None, None)
        """
        status, rx = self._transceive(bytes([CMD_READ_MEASUREMENT | AXIS_ALL]), 6)
        if status & STATUS_ERROR:
            return False, None, None, None
        self._measurement_read()

        raw_x, raw_y, raw_z = struct.unpack('>hhh', rx)
        return (
            True,
            self.raw_to_physical(AXIS_X, raw_x),
            self.raw_to_physical(AXIS_Y, raw_y),
            self.raw_to_physical(AXIS_Z, raw_z),
        )

    def read_measurement_axes(self, axes, result):
        """
        Read a subset of X/Y/Z without triggering

        Args:
            axes: Mask of AXIS_X / AXIS_Y / AXIS_Z
            result: Mutable sequence, filled in X, Y, Z order

        Returns:
            bool: True if result was filled
        """
        selected = self._selected_axes(axes, result)
        if selected is None:
            return False

        status, rx = self._transceive(bytes([CMD_READ_MEASUREMENT | axes]), 2 * len(selected))
        if status & STATUS_ERROR:
            return False
        self._measurement_read()

        raws = struct.unpack(f'>{len(selected)}h', rx)
        for index, (axis, raw) in enumerate(zip(selected, raws)):
            result[index] = self.raw_to_physical(axis, raw)
        return True

    def _wait_for_conversion(self):
        self.bus.sleep(self.conversion_delay_ms() / 1000)

    def read_data(self):
        """
        Trigger a measurement, wait for it and read X, Y, Z

        Returns:
            tuple: (True, x, y, z) in µT, or (False, None, None, None)
        """
        if not self.start_single_measurement():
            return False, None, None, None
        self._wait_for_conversion()
        return self.read_measurement()

    def read_data_axes(self, axes, result):
        """
        Trigger a measurement, wait for it and read the selected axes

        Returns:
            bool: True if result was filled
        """
        if self._selected_axes(axes, result) is None:
            return False
        if not self.start_single_measurement():
            return False
        self._wait_for_conversion()
        return self.read_measurement_axes(axes, result)

    @property
    def magnetic(self):
        """
        Read magnetometer data

        Returns:
            Tuple of (mx, my, mz) in µT (microtesla)
        """
        ok, mx, my, mz = self.read_data()
        if not ok:
            raise RuntimeError(f"MLX90393 measurement failed (status {decode_status(self.last_status)})")
        return (mx, my, mz)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self, gain=DEFAULT_GAIN, resolution_x=DEFAULT_RESOLUTION,
                   resolution_y=DEFAULT_RESOLUTION, resolution_z=DEFAULT_RESOLUTION,
                   oversampling=DEFAULT_OVERSAMPLING, digital_filter=DEFAULT_FILTER,
                   trigger_interrupt=False):
        """
        Bring the sensor to a known configuration

        Registers written before a failing step stay written.

        Returns:
            bool: True if every step succeeded
        """
        steps = (
            ('exit mode', self.exit_mode),
            ('reset', self.reset),
            ('gain', lambda: self.set_gain(gain)),
            ('resolution X', lambda: self.set_resolution(AXIS_X, resolution_x)),
            ('resolution Y', lambda: self.set_resolution(AXIS_Y, resolution_y)),
            ('resolution Z', lambda: self.set_resolution(AXIS_Z, resolution_z)),
            ('oversampling', lambda: self.set_oversampling(oversampling)),
            ('filter', lambda: self.set_filter(digital_filter)),
            ('TRIG/INT', lambda: self.set_trigger_interrupt(trigger_interrupt)),
        )
        for name, step in steps:
            if not step():
                self._debug.debug_message(f"Initialization failed at {name} (status {decode_status(self.last_status)})")
                return False

        print(f"[MLX90393] Initialized at 0x{self.address:02X}")
        print(f"[MLX90393] Gain: {gain}, Filter: {digital_filter}, OSR: {oversampling}")
        return True

    def display_status(self):
        """Print the flags of the last status byte"""
        if self.last_status is None:
            print("[MLX90393] Status: no transaction yet")
            return
        flags = decode_status(self.last_status)
        print(f"[MLX90393] Status 0x{self.last_status:02X}: {', '.join(flags) if flags else 'OK'}")
        print(f"[MLX90393] Mode: {self.mode_name}")

    def get_sensor(self):
        """
        Unified sensor description

        Returns:
            dict: name, version, sensor_id, type, range and resolution in µT
        """
        return {
            'name': SENSOR_NAME,
            'version': SENSOR_VERSION,
            'sensor_id': self.sensor_id,
            'type': SENSOR_TYPE,
            'min_value': SENSOR_MIN_UT,
            'max_value': SENSOR_MAX_UT,
            'resolution': SENSOR_RESOLUTION_UT,
            'min_delay': 0,
        }

    def get_event(self):
        """
        Take a measurement as a unified sensor event

        Returns:
            dict with sensor_id, type, timestamp and magnetic (x, y, z),
            or None if the measurement failed
        """
        ok, mx, my, mz = self.read_data()
        if not ok:
            return None
        return {
            'sensor_id': self.sensor_id,
            'type': SENSOR_TYPE,
            'timestamp': time.monotonic(),
            'magnetic': (mx, my, mz),
        }
