# aad_montecarlo/stochastic/summation.py
"""
Compensated summation.

Monte Carlo aggregates run over 10^5 - 10^7 paths. Plain left-to-right
summation loses the low-order bits of every small term once the running sum
is large, so every reducer in the engine goes through `kahan_sum`.

The algorithm is the Kahan-Babuska (Neumaier) variant of Kahan summation: the
compensation term also captures the error when the new term is larger than
the running sum, which classic Kahan misses on mixed-sign data.

For large inputs the sum is vectorised over `_LANES` independent lanes: row r
of the (rows x _LANES) block is added into every lane at once, each lane
keeping its own compensation. The lane totals and compensations are combined
with a final scalar pass.
"""

import math
import numpy as np

_LANES = 1024


def _neumaier(values) -> float:
    total = 0.0
    compensation = 0.0
    for x in values:
        t = total + x
        if abs(total) >= abs(x):
            compensation += (total - t) + x
        else:
            compensation += (x - t) + total
        total = t
    return total + compensation


def kahan_sum(values) -> float:
    """
    Compensated sum of a one-dimensional array.

    Infinities and NaNs follow IEEE-754 (the compensation term would turn
    `inf` into `nan`, so non-finite input falls back to the plain sum).
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    n = values.size
    if n == 0:
        return 0.0
    if not np.isfinite(values).all():
        return float(np.sum(values))
    if n <= _LANES:
        return _neumaier(values.tolist())

    rows = -(-n // _LANES)
    padded = np.zeros(rows * _LANES, dtype=np.float64)
    padded[:n] = values
    block = padded.reshape(rows, _LANES)

    total = block[0].copy()
    compensation = np.zeros(_LANES, dtype=np.float64)
    for row in block[1:]:
        t = total + row
        compensation += np.where(np.abs(total) >= np.abs(row), (total - t) + row, (row - t) + total)
        total = t

    result = _neumaier(np.concatenate((total, compensation)).tolist())
    if not math.isfinite(result):
        # overflow of an intermediate lane
        return float(np.sum(values))
    return result


def kahan_mean(values) -> float:
    values = np.asarray(values, dtype=np.float64).ravel()
    if values.size == 0:
        return math.nan
    return kahan_sum(values) / values.size
