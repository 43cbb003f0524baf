"""HTTP API: health, metrics and interaction log endpoints."""
