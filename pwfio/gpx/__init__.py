"""
Read and write GPS Exchange Format (GPX) 1.1 [1]_ tracks.

.. [1] http://www.topografix.com/GPX/1/1/

"""
from pwfio.gpx._reading import read, map_type, infer_sport
from pwfio.gpx._writing import write
