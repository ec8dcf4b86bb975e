"""
Freight Kernel

Domain values, records and intervals for the multi-currency aggregation
engines, with:
- Typed exceptions carrying machine-readable codes
- Structured JSON logging
- Read-only access to the portal tables
"""

__version__ = "0.1.0"
