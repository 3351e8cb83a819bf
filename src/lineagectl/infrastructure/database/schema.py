"""SQLAlchemy Core table definitions for the lineagectl project store.

Two collections: ``projects`` holds the full SavedProject JSON blob per
id, ``project_index`` holds the lightweight metadata used for listing.
``position`` keeps index entries in first-save order.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

projects = Table(
    "projects",
    metadata,
    Column("id", Text, primary_key=True),
    Column("payload", Text, nullable=False),  # SavedProject JSON
    Column("updated_at", Text, nullable=False),
)

project_index = Table(
    "project_index",
    metadata,
    Column("id", Text, primary_key=True),
    Column("name", Text, nullable=False),
    Column("source_project_name", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
    Column("node_count", Integer, nullable=False, default=0, server_default="0"),
    Column("planned_node_count", Integer, nullable=False, default=0, server_default="0"),
    Column("schema_version", Integer, nullable=False, default=1, server_default="1"),
    Column("position", Integer, nullable=False),
)

Index("ix_project_index_updated_at", project_index.c.updated_at)
