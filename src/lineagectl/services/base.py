"""BaseService: shared foundation for lineagectl services.

Every service receives a :class:`Workspace` at construction time. The
Workspace provides the async project store; services load a project,
run the pure graph engine over it, and wrap the outcome in a
:class:`ServiceResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lineagectl.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from lineagectl.domain.models import SavedProject
    from lineagectl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class LineageService(BaseService):
            async def ancestors(self, project_id: str, node_id: str) -> ServiceResult:
                project, error = await self._load_project("ancestors", project_id)
                if error:
                    return error
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    async def _load_project(
        self, op: str, project_id: str
    ) -> tuple[SavedProject, None] | tuple[None, ServiceResult]:
        """Load *project_id* or build the matching NOT_FOUND error result."""
        project = await self._workspace.store.load(project_id)
        if project is None:
            logger.debug("Project %s not found for %s", project_id, op)
            return None, ServiceResult.failure(
                op, ErrorCode.NOT_FOUND, f"Project '{project_id}' not found"
            )
        return project, None

    @staticmethod
    def _node_missing(op: str, project: SavedProject, node_id: str) -> ServiceResult | None:
        if any(node.id == node_id for node in project.nodes):
            return None
        return ServiceResult.failure(
            op,
            ErrorCode.NOT_FOUND,
            f"Node '{node_id}' not found in project '{project.metadata.id}'",
        )
