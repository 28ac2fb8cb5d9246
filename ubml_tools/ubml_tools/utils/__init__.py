"""Small shared helpers (logging setup, format versions)."""
