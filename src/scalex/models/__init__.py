"""Pydantic models for gateway objects, service configuration and state."""
