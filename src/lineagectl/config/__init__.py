"""Configuration: pydantic models, settings sources, and logging setup."""
