"""stickychain.marketplace.stores

Store layouts for marketplace entities.
"""

from __future__ import annotations

from stickychain.core.store import IndexedStore, IndexSpec
from stickychain.marketplace.models import Milestone, Project, ProjectStatus, Proposal


class ProjectStore(IndexedStore[Project]):
    def __init__(self) -> None:
        super().__init__(
            "Project",
            indexes=[
                IndexSpec("client_id"),
                IndexSpec("freelancer_id"),
                IndexSpec("status"),
                IndexSpec("skills", multi=True),
            ],
        )

    def find_by_status(self, status: ProjectStatus) -> list[Project]:
        return self.find_by_index("status", status)

    def find_by_skills(self, skills: list[str]) -> list[Project]:
        """Projects matching ANY of the skills, each once."""

        seen: dict[str, None] = {}
        for skill in skills:
            for pid in self.ids_by_index("skills", skill):
                seen[pid] = None
        return [self.get(pid) for pid in seen]


class ProposalStore(IndexedStore[Proposal]):
    def __init__(self) -> None:
        super().__init__(
            "Proposal",
            indexes=[IndexSpec("project_id"), IndexSpec("freelancer_id"), IndexSpec("status")],
        )

    def find_by_project_and_freelancer(self, project_id: str, freelancer_id: str) -> Proposal | None:
        for p in self.find_by_index("project_id", project_id):
            if p.freelancer_id == freelancer_id:
                return p
        return None


class MilestoneStore(IndexedStore[Milestone]):
    def __init__(self) -> None:
        super().__init__(
            "Milestone",
            indexes=[
                IndexSpec("project_id", ordered=True, position_field="position"),
                IndexSpec("status"),
            ],
        )

    def find_by_project(self, project_id: str) -> list[Milestone]:
        return self.find_by_index("project_id", project_id)
