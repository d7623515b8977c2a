"""HTTP API for the workforce engine."""
