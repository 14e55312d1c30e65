"""
chesslobby package bootstrap.

Subpackages:
- interface: Adapters for HTTP, the Socket.IO relay, CLI, and telemetry.
- domain: Chess rule oracle and the multiplayer session core.
- infrastructure: Configuration and persistence of user identities.
"""

__all__ = ["interface", "domain", "infrastructure"]
