"""
Persistence of populations, genomes and networks.
"""

from .object_store import read_object, write_object

__all__ = [
    "read_object",
    "write_object"
]
