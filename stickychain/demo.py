"""stickychain.demo

A scripted session: one board, a few cards, one project from publish to done.

Used by `stickychain demo` and by the end-to-end tests.
"""

from __future__ import annotations

from dataclasses import dataclass

from stickychain.app import Application
from stickychain.core.bus import log_notification
from stickychain.kanban.models import Board, Card, Priority
from stickychain.marketplace.models import MilestonePlan, Project


@dataclass(frozen=True)
class DemoResult:
    board: Board
    cards: list[Card]
    project: Project


def run_demo(app: Application) -> DemoResult:
    d = app.dispatcher
    app.bus.subscribe("*", log_notification)

    board = d.create_board("alice", template="BASIC_KANBAN", name="Launch")
    backlog, doing, _review, done = (c.id for c in board.columns)

    epic = d.create_card(board.id, backlog, "Ship v1", "alice", priority=Priority.HIGH, tags=["epic"])
    story = d.create_card(board.id, backlog, "Write the docs", "alice", parent_id=epic.id)
    task = d.create_card(board.id, backlog, "Fix login bug", "bob", priority=Priority.HIGH)

    d.assign_card(task.id, "bob", "alice")
    d.move_card(task.id, doing, "bob")
    d.update_card(story.id, {"description": "Quickstart and API reference"}, "alice")
    d.move_card(task.id, done, "bob")

    project = d.create_project("alice", "Landing page", 1200, skills=["css", "copywriting"])
    d.publish_project(project.id, "alice")
    proposal = d.submit_proposal(
        project.id,
        "carol",
        1000,
        cover_letter="Two weeks.",
        milestones=[MilestonePlan("Design", 400), MilestonePlan("Build", 600)],
    )
    d.submit_proposal(project.id, "dave", 1100)
    d.accept_proposal(proposal.id, "alice")
    d.start_project(project.id, "alice")

    first, second = app.stores.milestones.find_by_project(project.id)
    d.submit_milestone(first.id, "carol")
    d.reject_milestone(first.id, "alice", feedback="Needs a darker palette")
    d.submit_milestone(first.id, "carol")
    d.approve_milestone(first.id, "alice")
    d.submit_milestone(second.id, "carol")
    d.approve_milestone(second.id, "alice")

    cards = [app.stores.cards.get(c.id) for c in (epic, story, task)]
    return DemoResult(board=board, cards=cards, project=app.stores.projects.get(project.id))
