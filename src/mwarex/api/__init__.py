"""HTTP API for MwareX."""
