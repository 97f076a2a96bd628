"""HTTP API for the staffing engine."""
