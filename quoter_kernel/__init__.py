"""
Quoter Kernel - shared primitives for the signage quoting system.

- Typed, coded exceptions
- Structured JSON logging
- Integer pence arithmetic with explicit rounding
- Deterministic hashing and clocks
- SQLAlchemy base, engine and rate-card ORM models
"""

__version__ = "0.1.0"
