"""Domain layer: lineage data model, layer inference, and filter state.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
