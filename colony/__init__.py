"""Colony — agent logistics and compound production for a tick-based colony."""

__version__ = "0.3.0"
