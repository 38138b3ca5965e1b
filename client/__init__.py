"""Client package for tcpping.

Contains client-specific establishment and interrupt handling:
- handshake: resolve_target, connect_first, establish
- shutdown: cancel_on_interrupt

Note: run_client and ExitCode are not exported here. Import directly from
client.runner when needed.
"""

from client.handshake import connect_first, establish, resolve_target
from client.shutdown import cancel_on_interrupt

__all__ = [
    "resolve_target",
    "connect_first",
    "establish",
    "cancel_on_interrupt",
]
