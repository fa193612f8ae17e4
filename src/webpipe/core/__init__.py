"""
=============================================================================
NETWORKING CORE
=============================================================================

The transport underneath the pipeline:

    SocketServer   bind, listen, accept loop, signal-driven shutdown
    Connection     buffered reads, writes (whole responses or single
                   chunks), keep-alive timeouts, clean close
    ThreadPool     one task per connection, bounded queue

Blocking I/O throughout: a worker that streams a large static file is
busy for the whole transfer, the accept loop never is.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
