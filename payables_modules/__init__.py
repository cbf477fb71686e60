"""Payables modules: business-facing glue over the pure engines."""
