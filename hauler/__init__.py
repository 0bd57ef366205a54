"""Collect images and files into a portable OCI layout store."""

__version__ = "0.1.0"