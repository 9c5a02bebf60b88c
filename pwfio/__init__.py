__version__ = '0.1.0'

from pwfio.conversion import convert, ConversionResult, Format, detect_format
from pwfio._util.diagnostics import ConversionWarning, WarningCollector
from pwfio._util.exceptions import (
    PWFIOError, ReadError, InvalidFileError, InvalidDataError,
    ValidationError, SerializationError, UnsupportedFormatError,
    MissingRequiredFieldError)
