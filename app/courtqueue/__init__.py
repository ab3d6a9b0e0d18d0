"""Court Queue - rotation of players through a fixed set of courts."""

__version__ = "0.1.0"
