"""
Logistics Kernel

Shared foundation for the proforma job order engine:
- Typed, code-carrying exceptions
- Structured JSON logging with request-scoped context
- Immutable money and currency value objects
- Declarative workflow tables for status lifecycles
- SQLAlchemy base classes for the storage boundary
"""

__version__ = "0.1.0"
