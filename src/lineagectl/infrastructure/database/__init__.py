"""SQLite project store schema and engine via SQLAlchemy Core."""

from lineagectl.infrastructure.database.engine import create_db_engine, init_database
from lineagectl.infrastructure.database.schema import metadata, project_index, projects

__all__ = [
    "create_db_engine",
    "init_database",
    "metadata",
    "project_index",
    "projects",
]
