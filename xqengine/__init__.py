"""Xiangqi board model, move generation, UCCI-style commands and a TCP command server."""

__version__ = "0.1.0"