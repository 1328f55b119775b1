"""Persistence adapters for the guestbook."""
