"""Resolve, download and manage git-hosted pipeline projects."""

__version__ = "0.1.0"
