"""Git repository fixtures backed by real temporary repositories."""

import pytest
from git import Actor, Repo

TEST_ACTOR = Actor("Test User", "test@example.com")


def commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    """Write ``name`` in the working tree, commit it and return the commit sha."""
    path = f"{repo.working_tree_dir}/{name}"
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    repo.index.add([name])
    commit = repo.index.commit(message, author=TEST_ACTOR, committer=TEST_ACTOR)
    return commit.hexsha


@pytest.fixture
def git_repo(workspace):
    """Repository inside the workspace with one commit on ``main``.

    Structure:
        workspace/repo/
            README.md   ("hello\\n")
    """
    repo_dir = workspace / "repo"
    repo = Repo.init(repo_dir, initial_branch="main")
    with repo.config_writer() as writer:
        writer.set_value("user", "name", TEST_ACTOR.name)
        writer.set_value("user", "email", TEST_ACTOR.email)
    commit_file(repo, "README.md", "hello\n", "Initial commit")
    yield repo
    repo.close()


@pytest.fixture
def bare_remote(workspace, git_repo):
    """Bare repository registered as ``origin`` of git_repo, holding ``main``."""
    remote_dir = workspace / "remote.git"
    remote = Repo.init(remote_dir, bare=True, initial_branch="main")
    git_repo.create_remote("origin", str(remote_dir))
    git_repo.git.push("origin", "main")
    yield remote
    remote.close()
