"""Infrastructure layer: SQLite project store, graph engine, layout.

This layer depends on stdlib and third-party libs (SQLAlchemy, NetworkX).
It must never import from services, commands, or output.
The service layer bridges between domain models and infrastructure.
"""
