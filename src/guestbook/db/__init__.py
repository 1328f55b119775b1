# src/guestbook/db/__init__.py
"""Database configuration and utilities."""

from .session import Base, create_engine_for_url, create_sessionmaker, create_tables, drop_tables

__all__ = ["Base", "create_engine_for_url", "create_sessionmaker", "create_tables", "drop_tables"]
