"""Order management service: orders, line items, status lifecycle and stats."""

__version__ = "0.1.0"
