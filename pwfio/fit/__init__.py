"""
Import the Flexible and Interoperable data Transfer (FIT) protocol [1]_.

Import only: there is no writer for this format.

Turning bytes into typed messages is the decoder's job (by default
python-fitparse [2]_ behind `FitparseDecoder`); this subpackage maps those
messages onto the workout model. Pass any object with a compatible
``decode`` method as ``decoder=`` to use another protocol implementation.


.. [1] https://www.thisisant.com/resources/fit
.. [2] https://github.com/dtcooper/python-fitparse

"""
from pwfio.fit._reading import read, read_messages
from pwfio.fit._decoding import DecodedMessage, FitparseDecoder
from pwfio.fit._mappings import map_sport
