"""
tables.py - MLX90393 calibration and timing tables

Sensitivity (µT/LSB) from datasheet Table 17 and conversion time (ms)
from Table 18. Both are indexed by the register field values, so a
setting can be used directly as an index.
"""

from .constants import AXIS_T, AXIS_Z

# [hallconf][gain][resolution][xy, z]
# hallconf 0 is HALLCONF=0xC (power-on default), 1 is HALLCONF=0x0
LSB_LOOKUP = (
    # HALLCONF = 0xC
    (
        ((0.751, 1.210), (1.502, 2.420), (3.004, 4.840), (6.009, 9.680)),   # 5x
        ((0.601, 0.968), (1.202, 1.936), (2.403, 3.872), (4.840, 7.744)),   # 4x
        ((0.451, 0.726), (0.901, 1.452), (1.803, 2.904), (3.605, 5.808)),   # 3x
        ((0.376, 0.605), (0.751, 1.210), (1.502, 2.420), (3.004, 4.840)),   # 2.5x
        ((0.300, 0.484), (0.601, 0.968), (1.202, 1.936), (2.403, 3.872)),   # 2x
        ((0.250, 0.403), (0.501, 0.807), (1.001, 1.613), (2.003, 3.227)),   # 1.667x
        ((0.200, 0.323), (0.401, 0.645), (0.801, 1.291), (1.602, 2.581)),   # 1.333x
        ((0.150, 0.242), (0.300, 0.484), (0.601, 0.968), (1.202, 1.936)),   # 1x
    ),
    # HALLCONF = 0x0
    (
        ((0.787, 1.267), (1.573, 2.534), (3.146, 5.068), (6.292, 10.137)),  # 5x
        ((0.629, 1.014), (1.258, 2.027), (2.517, 4.055), (5.034, 8.109)),   # 4x
        ((0.472, 0.760), (0.944, 1.521), (1.888, 3.041), (3.775, 6.082)),   # 3x
        ((0.393, 0.634), (0.787, 1.267), (1.573, 2.534), (3.146, 5.068)),   # 2.5x
        ((0.315, 0.507), (0.629, 1.014), (1.258, 2.027), (2.517, 4.055)),   # 2x
        ((0.262, 0.422), (0.524, 0.845), (1.049, 1.689), (2.097, 3.379)),   # 1.667x
        ((0.210, 0.338), (0.419, 0.676), (0.839, 1.352), (1.678, 2.703)),   # 1.333x
        ((0.157, 0.253), (0.315, 0.507), (0.629, 1.014), (1.258, 2.027)),   # 1x
    ),
)

# [dig_filt][osr] in ms
TCONV_LOOKUP = (
    (1.27, 1.84, 3.00, 5.30),
    (1.46, 2.23, 3.76, 6.84),
    (1.84, 3.00, 5.30, 9.91),
    (2.61, 4.53, 8.37, 16.05),
    (4.15, 7.60, 14.52, 28.34),
    (7.22, 13.75, 26.80, 52.92),
    (13.36, 26.04, 51.38, 102.07),
    (25.65, 50.61, 100.53, 200.37),
)

HALLCONF_DEFAULT = 0

NUM_HALLCONF = 2
NUM_GAINS = 8
NUM_RESOLUTIONS = 4
NUM_AXIS_CLASSES = 2
NUM_FILTERS = 8
NUM_OVERSAMPLING = 4


def axis_class(axis):
    """0 for X/Y, 1 for Z (the Z Hall plate has its own sensitivity)"""
    if axis == AXIS_T:
        raise ValueError("Temperature has no magnetic scale factor")
    return 1 if axis == AXIS_Z else 0


def lsb_for(gain, resolution, axis, hallconf=HALLCONF_DEFAULT):
    """
    Look up the sensitivity for one axis

    Args:
        gain: GAIN_SEL value (0-7)
        resolution: RES_x value (0-3)
        axis: AXIS_X, AXIS_Y or AXIS_Z
        hallconf: Table row (0 = HALLCONF 0xC)

    Returns:
        float: µT per LSB
    """
    return LSB_LOOKUP[hallconf][gain][resolution][axis_class(axis)]


def conversion_time_ms(digital_filter, oversampling):
    """Conversion time in ms for one measurement"""
    return TCONV_LOOKUP[digital_filter][oversampling]


def validate_tables():
    """
    Check both tables cover every combination of settings

    Raises:
        ValueError: If a dimension is short or an entry is not positive
    """
    if len(LSB_LOOKUP) != NUM_HALLCONF:
        raise ValueError(f"LSB table has {len(LSB_LOOKUP)} hallconf rows")
    for hallconf, gains in enumerate(LSB_LOOKUP):
        if len(gains) != NUM_GAINS:
            raise ValueError(f"LSB table hallconf {hallconf}: {len(gains)} gains")
        for gain, resolutions in enumerate(gains):
            if len(resolutions) != NUM_RESOLUTIONS:
                raise ValueError(f"LSB table gain {gain}: {len(resolutions)} resolutions")
            for res, pair in enumerate(resolutions):
                if len(pair) != NUM_AXIS_CLASSES or min(pair) <= 0:
                    raise ValueError(f"LSB table entry [{hallconf}][{gain}][{res}] invalid: {pair}")

    if len(TCONV_LOOKUP) != NUM_FILTERS:
        raise ValueError(f"Conversion table has {len(TCONV_LOOKUP)} filter rows")
    for dig_filt, row in enumerate(TCONV_LOOKUP):
        if len(row) != NUM_OVERSAMPLING or min(row) <= 0:
            raise ValueError(f"Conversion table row {dig_filt} invalid: {row}")
