"""
VariantLens: protein variant -> structure, residue mapping and verbatim evidence.
"""
from .config import APP_VERSION

__version__ = APP_VERSION
