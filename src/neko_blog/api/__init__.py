"""HTTP API for Neko Blog."""
