"""Database models, sessions and repositories."""
