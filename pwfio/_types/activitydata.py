#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A time-indexed DataFrame view over a run of telemetry points, used where
it pays to let pandas do the resampling and rolling.

"""
from pandas import DataFrame, to_timedelta

from pwfio._util import exceptions


COLUMNS = ('heart_rate', 'power', 'cadence', 'speed', 'altitude',
           'latitude', 'longitude', 'distance', 'temperature')


class ActivityData(DataFrame):
    _metadata = ['start']

    @property
    def _constructor(self):
        return self.__class__

    def __finalize__(self, other, method=None, **kwargs):
        """Carry `start` over to derived frames."""
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self

    @classmethod
    def from_points(cls, points, columns=COLUMNS):
        """Build from `TelemetryPoint` objects (assumed time ordered).

        The index is the time offset from the first point, so duplicate
        timestamps are kept as duplicate index entries.
        """
        points = list(points)
        records = [{col: getattr(p, col) for col in columns} for p in points]
        data = cls.from_records(records, columns=list(columns))
        data = data.astype('float64')

        if points:
            start = points[0].timestamp
            offsets = [(p.timestamp - start).total_seconds() for p in points]
            data._finish_up(start=start, timeoffsets=offsets)
        else:
            data._finish_up(start=None)
        return data

    # NOTE: .rolling() takes a `min_periods` argument, but I think for most
    # purposes here we want to only consider a full window.

    def rollmean(self, column, seconds, *, samplingfreq=1, max_gap=0):
        """Rolling mean by time."""
        binned = self.filled(column, samplingfreq, max_gap=max_gap)
        return binned.rolling(seconds).mean()

    def resampled(self, column, samplingfreq=1):
        """Mean per `samplingfreq` second bin; empty bins are NaN."""
        rule = '%ds' % samplingfreq
        return self._try_get(column).resample(rule).mean()  # missing --> NaNs

    def filled(self, column, samplingfreq=1, *, max_gap=0):
        """Like `resampled`, but each value is held across runs of at most
        `max_gap` empty bins. Longer runs (pauses) stay NaN.
        """
        binned = self.resampled(column, samplingfreq)
        if not max_gap:
            return binned
        empty = binned.isna()
        runs = (~empty).cumsum()
        run_length = empty.astype(int).groupby(runs).transform('sum')
        return binned.ffill().where(~empty | (run_length <= max_gap))

    # Private methods
    # ---------------
    def _try_get(self, key):
        """Try and get a required column from the data."""
        try:
            return self[key]
        except KeyError as e:
            raise exceptions.MissingRequiredFieldError(key) from e

    def _finish_up(self, *, start=None, timeoffsets=None):
        """A pseudo-init method, used internally."""
        self.start = start
        if timeoffsets is not None:
            self.index = to_timedelta(timeoffsets, unit='s').rename('time')
