"""Pure domain model for the point-of-sale terminal (no I/O, no frameworks)."""
