"""
Saudization compliance: band calculations, reports, government API
"""
from . import nitaqat
from .mhrsd_client import MHRSDClient, MHRSDError, get_mhrsd_client

__all__ = [
    "nitaqat",
    "MHRSDClient",
    "MHRSDError",
    "get_mhrsd_client",
]
