"""HTTP API for the guestbook."""
