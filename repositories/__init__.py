"""Persistence layer: SQLAlchemy engine, schema and repositories."""
