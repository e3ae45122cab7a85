"""Host-side agent client, wire protocol and command-line helpers for a microVM runtime."""

__version__ = "0.1.0"