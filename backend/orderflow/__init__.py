"""Made-to-order material requirements and order fulfillment service."""

__version__ = "0.1.0"
