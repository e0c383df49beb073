"""Receipt amount extraction for tip calculation."""

__version__ = "0.1.0"
