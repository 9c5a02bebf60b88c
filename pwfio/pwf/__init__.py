"""
Read, write and validate PWF, the YAML workout history format.

"""
from pwfio.pwf._reading import read, load
from pwfio.pwf._writing import write, to_document
from pwfio.pwf._validation import validate, ValidationIssue, ValidationReport
