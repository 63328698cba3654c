"""
Document Store

Whole-document access to projects and teams. Reads validate the stored JSON
against the board schemas; writes replace entire fields and are guarded by a
compare-and-set on the project's ``version`` column, so two writers that
started from the same read cannot both succeed.
"""
import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy import update
from sqlmodel import Session

from taskboard.core.errors import ConcurrentWriteConflict, MalformedDocument, ProjectNotFound
from taskboard.models.project import Project
from taskboard.models.team import Team
from taskboard.schemas.board import Column, ProjectDocument, Task, TeamDocument, utc_now_iso

logger = logging.getLogger("taskboard.store")


class DocumentStore:
    """Read and write project/team documents through one database session."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_project(self, project_id: str) -> ProjectDocument:
        record = self.db.get(Project, project_id)
        if record is None:
            raise ProjectNotFound(project_id)
        return self._to_document(record)

    def create_project(self, document: ProjectDocument) -> ProjectDocument:
        record = Project(
            id=document.id,
            name=document.name,
            description=document.description,
            owner_id=document.owner_id,
            team_id=document.team_id,
            member_ids=list(document.member_ids),
            member_roles=dict(document.member_roles),
            columns=[c.to_document() for c in document.columns],
            tasks=[t.to_document() for t in document.tasks],
            version=document.version,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return self._to_document(record)

    def update_project(
        self,
        project_id: str,
        expected_version: int,
        tasks: Optional[List[Task]] = None,
        columns: Optional[List[Column]] = None,
    ) -> ProjectDocument:
        """
        Overwrite the given fields if the stored version still equals ``expected_version``.

        The whole ``tasks`` (or ``columns``) array is replaced; there is no
        per-element patch. ``updated_at`` is refreshed and ``version`` bumped.

        Raises:
            ConcurrentWriteConflict: someone else wrote the document first
            ProjectNotFound: the project disappeared
        """
        values = {
            "updated_at": utc_now_iso(),
            "version": expected_version + 1,
        }
        if tasks is not None:
            values["tasks"] = [t.to_document() for t in tasks]
        if columns is not None:
            values["columns"] = [c.to_document() for c in columns]

        statement = (
            update(Project)
            .where(Project.id == project_id, Project.version == expected_version)
            .values(**values)
        )
        result = self.db.connection().execute(statement)

        if result.rowcount == 0:
            self.db.rollback()
            current = self.db.get(Project, project_id)
            if current is None:
                raise ProjectNotFound(project_id)
            logger.warning(
                f"Version conflict on project {project_id}",
                extra={"extra_fields": {
                    "project_id": project_id,
                    "expected_version": expected_version,
                    "actual_version": current.version,
                }},
            )
            raise ConcurrentWriteConflict(project_id, expected_version, current.version)

        self.db.commit()
        # Drop cached rows so the re-read sees the values just written
        self.db.expire_all()
        return self.get_project(project_id)

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    def get_team(self, team_id: Optional[str]) -> Optional[TeamDocument]:
        if not team_id:
            return None
        record = self.db.get(Team, team_id)
        if record is None:
            return None
        try:
            return TeamDocument.model_validate(record.model_dump())
        except ValidationError as e:
            raise MalformedDocument(f"Team {team_id} failed validation: {e}")

    def save_team(self, document: TeamDocument) -> TeamDocument:
        record = self.db.get(Team, document.id)
        if record is None:
            record = Team(id=document.id, name=document.name, owner_id=document.owner_id)
        record.name = document.name
        record.description = document.description
        record.owner_id = document.owner_id
        record.member_ids = list(document.member_ids)
        record.member_roles = dict(document.member_roles)
        self.db.add(record)
        self.db.commit()
        return document

    # ------------------------------------------------------------------

    @staticmethod
    def _to_document(record: Project) -> ProjectDocument:
        try:
            return ProjectDocument.model_validate(record.model_dump())
        except ValidationError as e:
            logger.error(f"Project {record.id} failed schema validation")
            raise MalformedDocument(f"Project {record.id} failed validation: {e}")
