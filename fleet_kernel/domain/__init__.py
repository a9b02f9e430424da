"""Pure domain helpers for the fleet kernel (no I/O)."""
