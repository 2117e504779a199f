"""Resolve a user's country, currency and payment gateway from unreliable sources."""

__version__ = "0.1.0"
