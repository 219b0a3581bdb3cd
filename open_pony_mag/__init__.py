"""
open_pony_mag - MLX90393 magnetometer driver for CircuitPython / Blinka
"""

from .constants import *  # noqa: F401,F403
from .config import Config
from .magnetometer import Magnetometer
from .mlx90393 import MLX90393
from .transport import I2CTransport, transceive, decode_status

__version__ = "0.1.0"
