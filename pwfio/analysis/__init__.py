"""
Derived-data analyzers shared by the readers.

"""
from pwfio.analysis.power import compute_power_metrics, normalized_power
from pwfio.analysis.swim import (
    PoolBin, PoolLengthBins, bin_pool_length, swolf, summarize_lengths)
from pwfio.analysis.multisport import (
    SegmentSpan, segment_boundaries, is_multi_sport, detect_multi_sport)
