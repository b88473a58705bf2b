"""SQLAlchemy declarative base and engine/session helpers for the storage boundary."""
