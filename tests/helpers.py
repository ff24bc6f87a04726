"""Builders and git helpers shared across flowsync tests."""

import shutil
import subprocess
from pathlib import Path

import pytest

from flowsync.graph import Step

WELCOME_VIEW = """\
import SwiftUI

struct WelcomeView: View {
    var body: some View {
        VStack {
            Text("Welcome")
            Image("logo")
        }
    }
}
"""

HOME_VIEW = """\
import SwiftUI

struct HomeView: View {
    @State private var showSettings = false

    var body: some View {
        NavigationStack {
            NavigationLink {
                DetailView()
            } label: {
                Text("Details")
            }
        }
        .sheet(isPresented: $showSettings) {
            SettingsView()
        }
    }
}
"""

PROFILE_FORM_VIEW = """\
struct ProfileFormView: View {
    @State private var name = ""

    var body: some View {
        Form {
            TextField("Name", text: $name)
        }
    }
}
"""


def make_step(step_id, screen, source_file=None, next_ids=None, **kwargs):
    """Build a reviewed, live step with sensible defaults."""
    return Step(
        id=step_id,
        label=kwargs.pop("label", screen),
        screen=screen,
        category=kwargs.pop("category", "display"),
        source_file=source_file,
        next_ids=list(next_ids or []),
        **kwargs,
    )


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(repo: Path, *args: str) -> str:
    """Run git in ``repo`` with a fixed identity and return stdout."""
    result = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_all(repo: Path, message: str) -> str:
    """Stage everything, commit, and return the new HEAD."""
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")
