"""Service layer: domain operations used by the API."""
