"""
Static file server.

Serves a directory over HTTP with request-timing logs, configured from an
INI file.
"""

__version__ = "1.0.0"
