"""stickychain.marketplace

Projects, proposals, milestones. A work item with a lifecycle the chain can audit.
"""

from stickychain.marketplace.lifecycle import MILESTONE_LIFECYCLE, PROJECT_LIFECYCLE, Lifecycle
from stickychain.marketplace.models import (
    Milestone,
    MilestonePlan,
    MilestoneStatus,
    Project,
    ProjectStatus,
    Proposal,
    ProposalStatus,
)
from stickychain.marketplace.stores import MilestoneStore, ProjectStore, ProposalStore

__all__ = [
    "Lifecycle",
    "MILESTONE_LIFECYCLE",
    "Milestone",
    "MilestonePlan",
    "MilestoneStatus",
    "MilestoneStore",
    "PROJECT_LIFECYCLE",
    "Project",
    "ProjectStatus",
    "ProjectStore",
    "Proposal",
    "ProposalStatus",
    "ProposalStore",
]
