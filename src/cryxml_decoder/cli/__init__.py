"""Command-line interface for converting and inspecting CryXmlB files."""

from .main import main

__all__ = ["main"]
