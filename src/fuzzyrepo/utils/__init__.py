"""Small shared helpers (atomic writes, rate-limit tracking)."""
