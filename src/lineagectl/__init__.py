"""Explore, filter, and annotate dbt lineage graphs."""

__version__ = "0.1.0"
