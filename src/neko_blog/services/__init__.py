"""Service layer for Neko Blog."""
