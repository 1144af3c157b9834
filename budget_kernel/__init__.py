"""
Budget Kernel

The persistence and domain core of the budget-accounting engine:
- Analytical account registry and budget store
- Idempotent settlement application
- Typed exceptions and structured logging
- Decimal-only monetary arithmetic
"""

__version__ = "0.1.0"
