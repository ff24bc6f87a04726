"""Shared fixtures for flowsync tests."""

import logging

import pytest

from flowsync.graph import Journey, WorkflowGraph
from tests.helpers import WELCOME_VIEW, commit_all, git, make_step


@pytest.fixture
def onboarding_graph():
    """A graph with one journey: welcome -> home -> detail."""
    return WorkflowGraph(
        generated_at="2026-01-01T00:00:00+00:00",
        journeys=[
            Journey(
                id="onboarding",
                name="Onboarding",
                description="First launch",
                steps=[
                    make_step("welcome", "WelcomeView", "App/WelcomeView.swift", ["home"]),
                    make_step(
                        "home", "HomeView", "App/HomeView.swift", ["detail"], category="action"
                    ),
                    make_step("detail", "DetailView", "App/DetailView.swift"),
                ],
            )
        ],
    )


@pytest.fixture
def source_repo(tmp_path):
    """An initialized git repository with one view and a README committed."""
    repo = tmp_path / "ios-app"
    (repo / "App").mkdir(parents=True)
    git(repo, "init", "-q")
    (repo / "App" / "WelcomeView.swift").write_text(WELCOME_VIEW)
    (repo / "README.md").write_text("# App\n")
    commit_all(repo, "initial")
    return repo


@pytest.fixture(autouse=True)
def _restore_flowsync_logger():
    """Undo configure_logging() so later tests see records via propagation."""
    logger = logging.getLogger("flowsync")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
