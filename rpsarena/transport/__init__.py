"""
Transport Module - One socket per session.

The transport knows nothing about game semantics: it opens the connection,
decodes each inbound frame once, fans it out to registered listeners and
sends encoded outbound messages while the socket is open.
"""

from .connection import ConnectionHandle, Transport, build_endpoint_url

__all__ = [
    "ConnectionHandle",
    "Transport",
    "build_endpoint_url",
]
