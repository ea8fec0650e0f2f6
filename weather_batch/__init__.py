"""Weather batch service: collection, daily statistics and alerts."""

__version__ = "1.0.0"
