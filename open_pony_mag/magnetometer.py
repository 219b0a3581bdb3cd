"""
magnetometer.py - Magnetometer data handler for OpenPonyMag

Wraps an MLX90393 (or anything with a `magnetic` property in µT) and
adds hard-iron offsets, peak tracking, heading and field strength.
"""

import math
import time


class Magnetometer:
    """Magnetometer data handler"""

    def __init__(self, mag_sensor, declination=0.0, sleep=time.sleep):
        """
        Initialize magnetometer handler

        Args:
            mag_sensor: Magnetometer sensor object
            declination: Local magnetic declination in degrees (east positive)
            sleep: Delay function used between calibration samples
        """
        self.sensor = mag_sensor
        self.declination = declination
        self._sleep = sleep
        self.last_reading = None
        self.last_timestamp = 0

        # Hard-iron offsets in µT
        self.offsets = (0.0, 0.0, 0.0)

        # Largest magnitude seen per axis, sign kept
        self.peaks = [0.0, 0.0, 0.0]

    def read(self):
        """
        Take a reading and apply the offsets

        Returns:
            tuple: (mx, my, mz, timestamp) in µT, or None if the sensor
            did not deliver a measurement
        """
        try:
            raw = self.sensor.magnetic
        except RuntimeError as e:
            print(f"[Mag] Read error: {e}")
            return None

        timestamp = time.monotonic()
        reading = tuple(value - offset for value, offset in zip(raw, self.offsets))

        self.last_reading = reading
        self.last_timestamp = timestamp

        for axis, value in enumerate(reading):
            if abs(value) > abs(self.peaks[axis]):
                self.peaks[axis] = value

        return reading + (timestamp,)

    def get_last_reading(self):
        """Get last reading without triggering new read"""
        return self.last_reading if self.last_reading else (0.0, 0.0, 0.0)

    def get_peaks(self):
        return tuple(self.peaks)

    def reset_peaks(self):
        self.peaks = [0.0, 0.0, 0.0]

    def calibrate(self, samples=200, interval=0.05):
        """
        Calibrate hard-iron offsets

        Rotate sensor in all directions during calibration. Failed
        samples are skipped.

        Args:
            samples: Number of samples to collect
            interval: Seconds between samples

        Returns:
            Tuple of (offset_x, offset_y, offset_z) in µT, or None if no
            sample could be read
        """
        print(f"[Mag] Calibrating magnetometer ({samples} samples)...")
        print("[Mag] Rotate sensor in all directions!")

        lows = [float('inf')] * 3
        highs = [float('-inf')] * 3
        good = 0

        for i in range(samples):
            try:
                sample = self.sensor.magnetic
            except RuntimeError as e:
                print(f"[Mag] Sample {i} skipped: {e}")
                continue
            good += 1
            for axis, value in enumerate(sample):
                lows[axis] = min(lows[axis], value)
                highs[axis] = max(highs[axis], value)
            self._sleep(interval)

            if i % 20 == 0:
                print(f"  Progress: {i}/{samples}")

        if not good:
            print("[Mag] Calibration failed: no samples")
            return None

        # Centre of the min/max box
        self.set_calibration(*((high + low) / 2 for low, high in zip(lows, highs)))
        return self.offsets

    def set_calibration(self, offset_x, offset_y, offset_z):
        """
        Set calibration offsets

        Args:
            offset_x, offset_y, offset_z: Hard-iron offsets in µT
        """
        self.offsets = (offset_x, offset_y, offset_z)
        print(f"[Mag] Calibration set: X={offset_x:.1f} Y={offset_y:.1f} Z={offset_z:.1f}")

    def get_heading(self):
        """
        Heading of the last reading, 0-360° (0 = North, 90 = East)

        Level sensor only, no tilt compensation.
        """
        if not self.last_reading:
            return 0.0

        mx, my, _ = self.last_reading
        return (math.degrees(math.atan2(my, mx)) + self.declination) % 360.0

    def get_field_strength(self):
        """Magnitude of the last reading in µT"""
        if not self.last_reading:
            return 0.0
        return math.sqrt(sum(value * value for value in self.last_reading))

    def format_reading(self, reading=None):
        """
        Format a reading for display

        Args:
            reading: (mx, my, mz) in µT; defaults to the last reading

        Returns:
            str: Formatted string
        """
        if reading is None:
            reading = self.last_reading
        if not reading:
            return "No data"

        mx, my, mz = reading[:3]
        return f"X:{mx:+6.1f}µT Y:{my:+6.1f}µT Z:{mz:+6.1f}µT"
