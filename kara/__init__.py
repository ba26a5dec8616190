"""kara: karaoke party backend."""

__version__ = "0.1.0"
