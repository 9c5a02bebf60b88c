"""
Read and write Garmin Training Center XML (TCX) [1]_.

.. [1] https://www8.garmin.com/xmlschemas/TrainingCenterDatabasev2.xsd

"""
from pwfio.tcx._reading import read, map_sport
from pwfio.tcx._writing import write
