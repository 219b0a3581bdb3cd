"""
OpenPonyMag - MLX90393 magnetometer readout

Runs on CircuitPython (copy open_pony_mag/ to the board) or on a Linux
SBC through Blinka.
"""

import time

import board
import busio

from open_pony_mag import Config, I2CTransport, Magnetometer, MLX90393

READ_INTERVAL = 0.5


def main():
    print("=" * 60)
    print("OpenPonyMag - MLX90393")
    print("=" * 60)

    config = Config('settings.toml')
    settings = config.magnetometer_settings()

    # I2C bus - STEMMA QT (GP4=SDA, GP5=SCL)
    print("\n1. Initializing I2C bus...")
    i2c = busio.I2C(board.GP5, board.GP4)
    print("   ✓ I2C initialized")

    print("2. Initializing MLX90393...")
    sensor = MLX90393(I2CTransport(i2c), address=settings['address'], debug=settings['debug'])
    if not sensor.initialize(**settings['init']):
        sensor.display_status()
        raise RuntimeError(f"MLX90393 not responding at 0x{settings['address']:02X}")
    print("   ✓ MLX90393 initialized")

    mag = Magnetometer(sensor, declination=settings['declination'])

    while True:
        reading = mag.read()
        if reading is None:
            sensor.display_status()
        else:
            print(f"{mag.format_reading()}  |B|={mag.get_field_strength():.1f}µT  "
                  f"heading={mag.get_heading():.0f}°")
        time.sleep(READ_INTERVAL)


if __name__ == "__main__":
    main()
