"""Event-sourced read model of token exchange requests."""

__version__ = "0.1.0"
