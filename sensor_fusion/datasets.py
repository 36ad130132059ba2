"""
Loading recorded measurement logs.

A log is a whitespace-separated text file with one packet per line:

    L  px   py            timestamp  [gt_px gt_py gt_vx gt_vy ...]
    R  rho  phi  rho_dot  timestamp  [gt_px gt_py gt_vx gt_vy ...]

Ground truth columns are optional; anything after the four Cartesian
ground truth values (e.g. true yaw and yaw rate) is ignored.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from .measurements import SensorDataPacket, SensorType

logger = logging.getLogger(__name__)

# Number of measurement values per sensor code
LOG_VALUE_COUNTS = {SensorType.LIDAR: 2, SensorType.RADAR: 3}

# Widest supported line: R + 3 values + timestamp + 6 ground truth values
_MAX_COLUMNS = 11


def load_measurement_log(path, max_rows=None):
    """
    Read a measurement log into packets.

    Parameters
    ----------
    path : str or Path
        Log file
    max_rows : int, optional
        Only read the first ``max_rows`` packets

    Returns
    -------
    list of SensorDataPacket
        Packets in file order, with ``ground_truth`` set when the line has it

    Raises
    ------
    ValueError
        If a line has an unknown sensor code or too few columns
    """
    path = Path(path)
    df = pd.read_csv(path, sep=r'\s+', header=None, names=range(_MAX_COLUMNS),
                     dtype=str, nrows=max_rows, comment='#', engine='python')

    packets = [_parse_row(row, line_no) for line_no, row in enumerate(df.itertuples(index=False), 1)]

    counts = pd.Series([p.sensor_type.name for p in packets], dtype=object).value_counts()
    logger.info("Loaded %d packets from %s (%s)", len(packets), path.name,
                ', '.join(f"{name}: {n}" for name, n in counts.items()))

    return packets


def _parse_row(row, line_no):
    fields = [f for f in row if not pd.isna(f)]
    if not fields:
        raise ValueError(f"Line {line_no}: empty record")

    try:
        sensor = SensorType.from_code(fields[0])
    except ValueError as exc:
        raise ValueError(f"Line {line_no}: {exc}") from None

    n = LOG_VALUE_COUNTS[sensor]
    if len(fields) < n + 2:
        raise ValueError(
            f"Line {line_no}: {sensor} record needs {n} values and a timestamp, "
            f"got {len(fields) - 1} fields"
        )

    values = np.array(fields[1:n + 1], dtype=float)
    timestamp = int(fields[n + 1])

    truth = fields[n + 2:n + 6]
    ground_truth = np.array(truth, dtype=float) if len(truth) == 4 else None

    return SensorDataPacket(sensor_type=sensor, timestamp=timestamp,
                            raw_values=values, ground_truth=ground_truth)
