"""Database layer (SQLAlchemy async)."""
