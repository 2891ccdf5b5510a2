"""snapdelta - periodic delta snapshots of in-process stats."""

__version__ = "0.3.0"
