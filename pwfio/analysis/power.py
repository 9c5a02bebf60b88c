#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Power-based training load: Normalized Power (NP), Intensity Factor (IF),
Training Stress Score (TSS), Variability Index (VI) and total work.

References
----------
Allen, H. & Coggan, A. (2010) Training and Racing with a Power Meter.

"""
import logging

import numpy as np

from pwfio._types import ActivityData, PowerMetrics
from pwfio._util.diagnostics import WarningCollector


logger = logging.getLogger(__name__)

NP_WINDOW = 30     # seconds
MIN_SECONDS = NP_WINDOW
MAX_GAP = 10       # empty seconds held over; anything longer is a pause


def normalized_power(data, *, window=NP_WINDOW, max_gap=MAX_GAP):
    """30 s rolling mean --> 4th power --> mean --> 4th root.

    Parameters
    ----------
    data : ActivityData
        Must have a 'power' column.
    max_gap : int, optional
        Sparse recordings are held across this many empty 1 s bins.

    Returns
    -------
    float or None
        None when there isn't a single full window of data.
    """
    rolling = data.rollmean('power', window, max_gap=max_gap).dropna()
    if rolling.empty:
        return None
    mean_4th = float(np.mean(rolling.values ** 4))
    # Two square roots reproduce a constant series exactly.
    return float(np.sqrt(np.sqrt(mean_4th)))


def intensity_factor(np_watts, ftp):
    if np_watts is None or not ftp:
        return None
    return np_watts / ftp


def training_stress_score(np_watts, ftp, seconds):
    """TSS = (sec x NP x IF) / (FTP x 3600) x 100"""
    if np_watts is None or not ftp or seconds is None:
        return None
    if_ = intensity_factor(np_watts, ftp)
    return (seconds * np_watts * if_) / (ftp * 3600) * 100


def variability_index(np_watts, avg_watts):
    if np_watts is None or not avg_watts:
        return None
    return np_watts / avg_watts


def compute_power_metrics(points, *, ftp=None, warnings=None, path=None):
    """Derive a `PowerMetrics` from a run of telemetry points.

    The series is resampled to 1 s bins first, each sample holding until
    the next one unless the gap is longer than `MAX_GAP` (a pause). Fewer
    than `MIN_SECONDS` filled bins produces a data-quality warning and no
    metrics (a short series would give a misleading NP). Without an FTP
    only the FTP-dependent values (IF and TSS) are left out.

    Returns
    -------
    PowerMetrics or None
        None if there is no power in `points` at all.
    """
    if warnings is None:
        warnings = WarningCollector()

    powered = [p for p in points if p.power is not None]
    if not powered:
        return None

    data = ActivityData.from_points(powered, columns=('power',))
    binned = data.filled('power', max_gap=MAX_GAP).dropna()
    seconds = len(binned)

    if seconds < MIN_SECONDS:
        warnings.data_quality_issue(
            'power series covers %d s, at least %d s are needed for '
            'normalized power' % (seconds, MIN_SECONDS), path)
        return None

    np_watts = normalized_power(data)
    if np_watts is None:
        warnings.data_quality_issue(
            'power series has no unbroken %d s window' % NP_WINDOW, path)
        return None

    avg_watts = float(binned.mean())
    work_kj = float(binned.sum()) / 1000    # one second per bin

    logger.debug('np=%.1f over %d s (ftp=%s)', np_watts, seconds, ftp)

    return PowerMetrics(
        normalized_power=np_watts,
        intensity_factor=intensity_factor(np_watts, ftp),
        training_stress_score=training_stress_score(np_watts, ftp, seconds),
        variability_index=variability_index(np_watts, avg_watts),
        total_work_kj=work_kj,
        ftp=ftp,
        avg_power=avg_watts,
        max_power=float(data['power'].max()),
    )
