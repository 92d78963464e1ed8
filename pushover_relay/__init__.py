"""Pushover relay: turn upstream events into Pushover push notifications."""

__version__ = "1.0.0"
