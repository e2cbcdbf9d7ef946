"""
Connection Status
=================

Discrete connection states for a viewer session.

State Graph:
    disconnected → connecting → connected ⇄ congested
    connecting / connected / congested → error
    any state → disconnected (explicit close or dropped socket)

The status is derived by the session transition functions only.
Nothing else writes it.
"""

from enum import Enum


class ConnectionStatus(str, Enum):
    """
    Connection health as seen by the viewer.

    Attributes:
        DISCONNECTED: No socket attached
        CONNECTING: Socket opened, handshake not yet complete
        CONNECTED: Receiving normally
        CONGESTED: Connected, producer reports congestion
        ERROR: Socket reported an error, close pending
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CONGESTED = "congested"
    ERROR = "error"

    @property
    def is_live(self) -> bool:
        """Whether frames are expected in this state."""
        return self in (ConnectionStatus.CONNECTED, ConnectionStatus.CONGESTED)

    @property
    def label(self) -> str:
        """Human-readable label for status bars."""
        return _LABELS[self]


_LABELS = {
    ConnectionStatus.DISCONNECTED: "Disconnected",
    ConnectionStatus.CONNECTING: "Connecting...",
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.CONGESTED: "Connected (Congested)",
    ConnectionStatus.ERROR: "Error",
}
