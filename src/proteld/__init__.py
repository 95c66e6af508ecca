"""proteld - capture daemon for COCOT printouts received through a softmodem

Each TCP connection from the softmodem bridge is one phone call. The daemon
reassembles the 300 baud printout, repairs what it safely can, and drops the
connection as soon as the printout is complete (or clearly lost) so the call
is as short as possible.

- payload framing and repair are pure functions over a byte buffer
- the per-call state machine owns its buffer exclusively
- the listener only accepts and spawns
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
