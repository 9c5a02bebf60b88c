"""
Flat CSV export of workout telemetry (there is no CSV reader).

"""
from pwfio.csv._writing import write, resolve_columns, DEFAULT_COLUMNS
