"""Token accounting and execution-status codecs for AVM machines."""

__version__ = "0.1.0"
