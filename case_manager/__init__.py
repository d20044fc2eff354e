"""Test case manager: folder and step tree engine."""

__version__ = "1.0.0"
