"""Preset snapshot — fetch a Preset workspace snapshot and browse it offline."""

__version__ = "1.0.0"
