"""Building blocks for a Redis-protocol proxy: RESP codec and key monitoring."""

__version__ = "0.1.0"