"""
Payables Kernel

Shared foundation for the vendor payables engines:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock
- Decimal money helpers and typed input records
"""

__version__ = "0.1.0"
