"""AccessGate - effective-permission resolution for multi-tenant backends."""

__version__ = "0.1.0"
