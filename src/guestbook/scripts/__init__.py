"""Operational scripts for the guestbook."""
