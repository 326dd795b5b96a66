"""
HTTP API for the TPL codec.
"""

from .app import create_app

__all__ = ['create_app']
