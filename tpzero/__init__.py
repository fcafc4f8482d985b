"""TCP client and server exchanging a handshake, a text message and a package of strings."""

__version__ = "0.1.0"
__all__ = ["protocol", "config", "server", "client"]