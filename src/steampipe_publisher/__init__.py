"""Publish game builds to Steam by driving steamcmd."""

__version__ = "0.1.0"
