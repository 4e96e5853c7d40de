"""
Conduit Extension Service - hosts one extension over HTTP.
"""
__version__ = "0.1.0"
