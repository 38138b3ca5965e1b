"""Server package for tcpping.

Contains the server-side session model:
- handler: handle_connection (per-connection PING/PONG session)
- listener: open_listener (dual-stack listening socket)
- dispatcher: ConnectionDispatcher and session supervisors

Note: run_server is not exported here. Import directly from server.runner
when needed.
"""

from server.dispatcher import BoundedPool, ConnectionDispatcher, Supervisor, ThreadPerConnection
from server.handler import handle_connection
from server.listener import bound_port, open_listener

__all__ = [
    "handle_connection",
    "open_listener",
    "bound_port",
    "ConnectionDispatcher",
    "Supervisor",
    "ThreadPerConnection",
    "BoundedPool",
]
