"""Utility helpers for the guestbook."""
