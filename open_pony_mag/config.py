"""
config.py - Configuration Manager for OpenPonyMag

Reads settings.toml and provides typed access to the magnetometer setup.
"""

import os

from .constants import (
    MLX90393_ADDR_DEFAULT,
    DEFAULT_GAIN, DEFAULT_RESOLUTION, DEFAULT_FILTER, DEFAULT_OVERSAMPLING,
)

DEFAULTS = {
    'magnetometer.address': MLX90393_ADDR_DEFAULT,
    'magnetometer.gain': DEFAULT_GAIN,
    'magnetometer.resolution_x': DEFAULT_RESOLUTION,
    'magnetometer.resolution_y': DEFAULT_RESOLUTION,
    'magnetometer.resolution_z': DEFAULT_RESOLUTION,
    'magnetometer.filter': DEFAULT_FILTER,
    'magnetometer.oversampling': DEFAULT_OVERSAMPLING,
    'magnetometer.trigger_interrupt': False,
    'magnetometer.debug': False,
    'magnetometer.declination': 0.0,
}


class Config:
    """
    Configuration manager

    Parses settings.toml into dotted keys ("magnetometer.gain"). Keys not
    present in the file fall back to DEFAULTS.
    """

    def __init__(self, path='settings.toml'):
        """
        Initialize configuration

        Args:
            path: Path to settings.toml file
        """
        self.path = path
        self.config = dict(DEFAULTS)
        self._load()

    def _load(self):
        """Load and parse TOML configuration"""
        if not self._file_exists(self.path):
            print(f"[Config] Warning: {self.path} not found, using defaults")
            return

        self.config.update(self._parse_toml(self.path))
        print(f"[Config] Loaded from {self.path}")

    def _file_exists(self, path):
        try:
            os.stat(path)
            return True
        except OSError:
            return False

    def _parse_toml(self, path):
        """
        Simple TOML parser (CircuitPython has no tomllib)

        Supports:
        - Sections: [section.subsection]
        - Key-value pairs: key = value
        - Strings, numbers, booleans
        - Comments with #
        """
        config = {}
        current_section = None

        with open(path, 'r') as f:
            for number, line in enumerate(f, 1):
                line = self._strip_comment(line.strip())
                if not line:
                    continue

                if line.startswith('[') and line.endswith(']'):
                    current_section = line[1:-1].strip()
                    continue

                if '=' not in line:
                    raise ValueError(f"{path}:{number}: expected 'key = value', got {line!r}")

                key, value = line.split('=', 1)
                key = key.strip()
                value = value.strip()

                full_key = f"{current_section}.{key}" if current_section else key
                config[full_key] = self._parse_value(value)

        return config

    def _strip_comment(self, line):
        """Drop a trailing # comment that is not inside a quoted string"""
        quote = None
        for index, char in enumerate(line):
            if quote:
                if char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == '#':
                return line[:index].rstrip()
        return line

    def _parse_value(self, value):
        """Parse TOML value to Python type"""
        if len(value) >= 2 and value[0] == value[-1] and value[0] in '"\'':
            return value[1:-1]

        if value.lower() == 'true':
            return True
        if value.lower() == 'false':
            return False

        if value.lower().startswith('0x'):
            return int(value, 16)

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, key, default=None):
        """
        Get configuration value

        Args:
            key: Dotted key, e.g. 'magnetometer.gain'
            default: Value if key not found

        Returns:
            Configuration value or default
        """
        return self.config.get(key, default)

    def get_section(self, section):
        """
        Get the direct children of a section

        Returns:
            dict: short key -> value
        """
        prefix = section + '.'
        return {
            key[len(prefix):]: value
            for key, value in self.config.items()
            if key.startswith(prefix) and '.' not in key[len(prefix):]
        }

    def magnetometer_settings(self):
        """
        Typed magnetometer settings

        Returns:
            dict with address, debug, declination and init, the keyword
            arguments for MLX90393.initialize()
        """
        get = self.get
        return {
            'address': int(get('magnetometer.address')),
            'debug': bool(get('magnetometer.debug')),
            'declination': float(get('magnetometer.declination')),
            'init': {
                'gain': int(get('magnetometer.gain')),
                'resolution_x': int(get('magnetometer.resolution_x')),
                'resolution_y': int(get('magnetometer.resolution_y')),
                'resolution_z': int(get('magnetometer.resolution_z')),
                'oversampling': int(get('magnetometer.oversampling')),
                'digital_filter': int(get('magnetometer.filter')),
                'trigger_interrupt': bool(get('magnetometer.trigger_interrupt')),
            },
        }

    def dump(self):
        """Print all configuration for debugging"""
        print("\n" + "=" * 60)
        print("Configuration Dump")
        print("=" * 60)

        sections = {}
        for key, value in sorted(self.config.items()):
            section = key.rsplit('.', 1)[0] if '.' in key else 'root'
            sections.setdefault(section, []).append((key.split('.')[-1], value))

        for section, items in sorted(sections.items()):
            print(f"\n[{section}]")
            for short_key, value in items:
                print(f"  {short_key} = {value!r}")

        print("=" * 60 + "\n")
