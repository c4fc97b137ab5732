"""Git tools backed by GitPython.

Repository paths go through the PathAuthorizer like any other path. Git
commands run in a worker thread so network operations (fetch, pull, push)
don't block the event loop.

Credentials from the ``git`` settings section are sent as an HTTP basic
authorization header for https remotes only. They are never written to the
repository configuration or included in error messages.
"""

import asyncio
import base64
import logging
import os
from collections.abc import Callable
from enum import Enum
from typing import Any

from git import Actor, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from pydantic import Field

from mcp_toolkit.exceptions import (
    GitOperationError,
    ResourceNotFoundError,
    ToolValidationError,
)
from mcp_toolkit.tools.toolset import (
    CallContext,
    OperationSpec,
    ToolDescriptor,
    ToolParameters,
    Toolset,
    define_tool,
)

logger = logging.getLogger(__name__)

REPOSITORY_PATH_HELP = "repositoryPath: Path to the Git repository"
CONFLICT_SEPARATOR = "-" * 80


class RepositoryParameters(ToolParameters):
    repository_path: str | None = Field(default=None, description="Path to the Git repository")


class GitCommitOperation(str, Enum):
    GIT_COMMIT = "GitCommit"


class GitCommitParameters(RepositoryParameters):
    operation: GitCommitOperation
    message: str | None = Field(default=None, description="Commit message")


class GitFetchOperation(str, Enum):
    GIT_FETCH = "GitFetch"


class GitFetchParameters(RepositoryParameters):
    operation: GitFetchOperation
    remote_name: str = Field(default="origin", description="Name of the remote")


class GitPullOperation(str, Enum):
    GIT_PULL = "GitPull"


class GitPullParameters(RepositoryParameters):
    operation: GitPullOperation
    remote_name: str = Field(default="origin", description="Name of the remote")
    branch_name: str | None = Field(default=None, description="Branch to pull (default: current)")


class GitPushOperation(str, Enum):
    GIT_PUSH = "GitPush"


class GitPushParameters(RepositoryParameters):
    operation: GitPushOperation
    remote_name: str = Field(default="origin", description="Name of the remote")
    branch_name: str | None = Field(default=None, description="Branch to push (default: current)")


class GitBranchesOperation(str, Enum):
    GIT_BRANCHES = "GitBranches"


class GitBranchesParameters(RepositoryParameters):
    operation: GitBranchesOperation
    include_remote: bool = Field(default=True, description="Include remote branches")


class GitCreateBranchOperation(str, Enum):
    GIT_CREATE_BRANCH = "GitCreateBranch"


class GitCreateBranchParameters(RepositoryParameters):
    operation: GitCreateBranchOperation
    branch: str | None = Field(default=None, description="Name for the new branch")
    from_branch: str | None = Field(default=None, description="Source branch (default: HEAD)")


class GitCheckoutOperation(str, Enum):
    GIT_CHECKOUT = "GitCheckout"


class GitCheckoutParameters(RepositoryParameters):
    operation: GitCheckoutOperation
    branch_name: str | None = Field(default=None, description="Branch to check out")


class GitDeleteBranchOperation(str, Enum):
    GIT_DELETE_BRANCH = "GitDeleteBranch"


class GitDeleteBranchParameters(RepositoryParameters):
    operation: GitDeleteBranchOperation
    branch_name: str | None = Field(default=None, description="Branch to delete")


class GitMergeOperation(str, Enum):
    MERGE_ABORT_ON_CONFLICT = "MergeAbortOnConflict"
    MERGE_KEEP_OURS = "MergeKeepOurs"
    MERGE_KEEP_THEIRS = "MergeKeepTheirs"
    MERGE_REPORT_ONLY = "MergeReportOnly"


class GitMergeParameters(RepositoryParameters):
    operation: GitMergeOperation
    branch_name: str | None = Field(default=None, description="Branch to merge into the current one")
    commit_message: str | None = Field(default=None, description="Optional merge commit message")


class GitConflictsOperation(str, Enum):
    GIT_CONFLICTS = "GitConflicts"


class GitConflictsParameters(RepositoryParameters):
    operation: GitConflictsOperation


MERGE_STRATEGY_OPTIONS = {
    GitMergeOperation.MERGE_KEEP_OURS: "ours",
    GitMergeOperation.MERGE_KEEP_THEIRS: "theirs",
}

MERGE_PARAMETER_HELP = (
    REPOSITORY_PATH_HELP,
    "branchName: Name of the branch to merge",
    "commitMessage: Optional commit message for the merge",
)


def _head_names(repo: Repo) -> list[str]:
    return [head.name for head in repo.heads]


def _current_branch(repo: Repo) -> str | None:
    if repo.head.is_detached:
        return None
    return repo.active_branch.name


class GitTools(Toolset):
    """Branch, commit, merge and remote operations on local repositories."""

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of git tools."""
        return [
            define_tool(
                "GitCommit",
                GitCommitParameters,
                {
                    GitCommitOperation.GIT_COMMIT: OperationSpec(
                        handler=self.git_commit,
                        description="Stages all changes and creates a new commit with the specified message",
                        parameters=(REPOSITORY_PATH_HELP, "message: Commit message"),
                        required=("repository_path", "message"),
                    )
                },
            ),
            define_tool(
                "GitFetch",
                GitFetchParameters,
                {
                    GitFetchOperation.GIT_FETCH: OperationSpec(
                        handler=self.git_fetch,
                        description="Fetches changes from a remote repository",
                        parameters=(
                            REPOSITORY_PATH_HELP,
                            "remoteName: Name of the remote (default: origin)",
                        ),
                        required=("repository_path",),
                    )
                },
            ),
            define_tool(
                "GitPull",
                GitPullParameters,
                {
                    GitPullOperation.GIT_PULL: OperationSpec(
                        handler=self.git_pull,
                        description="Pulls changes from a remote repository",
                        parameters=(
                            REPOSITORY_PATH_HELP,
                            "remoteName: Name of the remote (default: origin)",
                            "branchName: Name of the branch to pull (default: current branch)",
                        ),
                        required=("repository_path",),
                    )
                },
            ),
            define_tool(
                "GitPush",
                GitPushParameters,
                {
                    GitPushOperation.GIT_PUSH: OperationSpec(
                        handler=self.git_push,
                        description="Pushes changes to a remote repository",
                        parameters=(
                            REPOSITORY_PATH_HELP,
                            "remoteName: Name of the remote (default: origin)",
                            "branchName: Name of the branch to push (default: current branch)",
                        ),
                        required=("repository_path",),
                    )
                },
            ),
            define_tool(
                "GitBranches",
                GitBranchesParameters,
                {
                    GitBranchesOperation.GIT_BRANCHES: OperationSpec(
                        handler=self.git_branches,
                        description="Lists all branches in a repository",
                        parameters=(
                            REPOSITORY_PATH_HELP,
                            "includeRemote: Include remote branches (default: true)",
                        ),
                        required=("repository_path",),
                    )
                },
            ),
            define_tool(
                "GitCreateBranch",
                GitCreateBranchParameters,
                {
                    GitCreateBranchOperation.GIT_CREATE_BRANCH: OperationSpec(
                        handler=self.git_create_branch,
                        description="Creates a new branch in a Git repository",
                        parameters=(
                            REPOSITORY_PATH_HELP,
                            "branch: Name for the new branch",
                            "fromBranch: Optional source branch to create from (defaults to HEAD)",
                        ),
                        required=("repository_path", "branch"),
                    )
                },
            ),
            define_tool(
                "GitCheckout",
                GitCheckoutParameters,
                {
                    GitCheckoutOperation.GIT_CHECKOUT: OperationSpec(
                        handler=self.git_checkout,
                        description="Switches to a specified branch, discarding local changes",
                        parameters=(REPOSITORY_PATH_HELP, "branchName: Name of the branch to checkout"),
                        required=("repository_path", "branch_name"),
                    )
                },
            ),
            define_tool(
                "GitDeleteBranch",
                GitDeleteBranchParameters,
                {
                    GitDeleteBranchOperation.GIT_DELETE_BRANCH: OperationSpec(
                        handler=self.git_delete_branch,
                        description="Deletes a branch from the repository",
                        parameters=(REPOSITORY_PATH_HELP, "branchName: Name of the branch to delete"),
                        required=("repository_path", "branch_name"),
                    )
                },
            ),
            define_tool(
                "GitMerge",
                GitMergeParameters,
                {
                    GitMergeOperation.MERGE_ABORT_ON_CONFLICT: OperationSpec(
                        handler=self.git_merge,
                        description="Merges specified branch into the current branch, aborts merge on conflict",
                        parameters=MERGE_PARAMETER_HELP,
                        required=("repository_path", "branch_name"),
                    ),
                    GitMergeOperation.MERGE_KEEP_OURS: OperationSpec(
                        handler=self.git_merge,
                        description="Merges specified branch, resolving conflicting hunks with the current branch's version",
                        parameters=MERGE_PARAMETER_HELP,
                        required=("repository_path", "branch_name"),
                    ),
                    GitMergeOperation.MERGE_KEEP_THEIRS: OperationSpec(
                        handler=self.git_merge,
                        description="Merges specified branch, resolving conflicting hunks with the merged branch's version",
                        parameters=MERGE_PARAMETER_HELP,
                        required=("repository_path", "branch_name"),
                    ),
                    GitMergeOperation.MERGE_REPORT_ONLY: OperationSpec(
                        handler=self.git_merge,
                        description="Merges specified branch into the current branch, only reports conflicts and leaves them unresolved",
                        parameters=MERGE_PARAMETER_HELP,
                        required=("repository_path", "branch_name"),
                    ),
                },
            ),
            define_tool(
                "GitConflicts",
                GitConflictsParameters,
                {
                    GitConflictsOperation.GIT_CONFLICTS: OperationSpec(
                        handler=self.git_conflicts,
                        description="Lists conflicts in the repository index",
                        parameters=(REPOSITORY_PATH_HELP,),
                        required=("repository_path",),
                    )
                },
            ),
        ]

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _redact(self, text: str) -> str:
        password = self.settings.git.user_password
        if password:
            text = text.replace(password, "****")
        return text

    def _command_error(self, action: str, error: GitCommandError) -> GitOperationError:
        detail = error.stderr or error.stdout or ""
        detail = str(detail).strip() or f"exit status {error.status}"
        return GitOperationError(self._redact(f"{action} failed: {detail}"))

    def _actor(self) -> Actor | None:
        git = self.settings.git
        if git.user_name and git.user_email:
            return Actor(git.user_name, git.user_email)
        return None

    def _config_options(self, repo: Repo, remote_name: str | None = None) -> list[str]:
        """``-c`` options for identity and, for https remotes, credentials."""
        git = self.settings.git
        options = []
        if git.user_name:
            options.append(f"user.name={git.user_name}")
        if git.user_email:
            options.append(f"user.email={git.user_email}")
        if remote_name and git.has_credentials:
            url = repo.remote(remote_name).url
            if url.startswith(("https://", "http://")):
                token = base64.b64encode(f"{git.user_name}:{git.user_password}".encode()).decode()
                options.append(f"http.extraHeader=Authorization: Basic {token}")
        return options

    def _git(self, repo: Repo, remote_name: str | None = None) -> Any:
        options = self._config_options(repo, remote_name)
        return repo.git(c=options) if options else repo.git

    def _require_remote(self, repo: Repo, remote_name: str) -> None:
        if remote_name not in [remote.name for remote in repo.remotes]:
            raise ResourceNotFoundError(f"Remote '{remote_name}' not found")

    def _require_branch(self, repo: Repo, branch: str) -> None:
        if branch not in _head_names(repo):
            raise ResourceNotFoundError(f"Branch '{branch}' not found")

    def _branch_or_current(self, repo: Repo, branch_name: str | None) -> str:
        if branch_name:
            self._require_branch(repo, branch_name)
            return branch_name
        current = _current_branch(repo)
        if current is None:
            raise ToolValidationError("HEAD is detached; specify branchName", field="branchName")
        return current

    async def _in_repository(
        self,
        params: RepositoryParameters,
        action: Callable[[Repo, Any], str],
    ) -> str:
        """Open the authorized repository and run ``action`` in a worker thread."""
        valid_path = self._validate_path(params.repository_path)
        operation = params.operation.value

        def run() -> str:
            try:
                repo = Repo(valid_path)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise ResourceNotFoundError(
                    f"Not a git repository: {params.repository_path}"
                ) from e
            with repo:
                try:
                    return action(repo, params)
                except GitCommandError as e:
                    raise self._command_error(operation, e) from e
                except ValueError as e:
                    raise GitOperationError(self._redact(f"{operation} failed: {e}")) from e

        return await asyncio.to_thread(run)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def git_commit(self, params: GitCommitParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._commit)

    def _commit(self, repo: Repo, params: GitCommitParameters) -> str:
        repo.git.add(A=True)
        index = repo.index
        if repo.head.is_valid() and not index.diff(repo.head.commit):
            raise GitOperationError("Nothing to commit, working tree clean")

        actor = self._actor()
        commit = index.commit(params.message, author=actor, committer=actor)
        return f"Successfully created commit {commit.hexsha} with message: {params.message}"

    async def git_fetch(self, params: GitFetchParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._fetch)

    def _fetch(self, repo: Repo, params: GitFetchParameters) -> str:
        self._require_remote(repo, params.remote_name)
        self._git(repo, params.remote_name).fetch(params.remote_name)
        return f"Successfully fetched from remote '{params.remote_name}'"

    async def git_pull(self, params: GitPullParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._pull)

    def _pull(self, repo: Repo, params: GitPullParameters) -> str:
        self._require_remote(repo, params.remote_name)
        branch = self._branch_or_current(repo, params.branch_name)
        self._git(repo, params.remote_name).pull(
            params.remote_name, branch, no_rebase=True, no_edit=True
        )
        return f"Successfully pulled from remote '{params.remote_name}' for branch '{branch}'"

    async def git_push(self, params: GitPushParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._push)

    def _push(self, repo: Repo, params: GitPushParameters) -> str:
        self._require_remote(repo, params.remote_name)
        branch = self._branch_or_current(repo, params.branch_name)
        self._git(repo, params.remote_name).push(
            params.remote_name, f"refs/heads/{branch}:refs/heads/{branch}"
        )
        return f"Successfully pushed '{branch}' to remote '{params.remote_name}'"

    async def git_branches(self, params: GitBranchesParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._branches)

    def _branches(self, repo: Repo, params: GitBranchesParameters) -> str:
        current = _current_branch(repo)
        lines = ["Branches in repository:", "", "Local branches:"]
        for head in repo.heads:
            lines.append(f"- {head.name} ({head.commit.hexsha[:7]})")
            if head.name == current:
                lines.append("  * Current HEAD")

        if params.include_remote:
            lines.extend(["", "Remote branches:"])
            for remote in repo.remotes:
                for ref in remote.refs:
                    lines.append(f"- {ref.name} ({ref.commit.hexsha[:7]})")

        return "\n".join(lines) + "\n"

    async def git_create_branch(
        self, params: GitCreateBranchParameters, context: CallContext
    ) -> str:
        return await self._in_repository(params, self._create_branch)

    def _create_branch(self, repo: Repo, params: GitCreateBranchParameters) -> str:
        if params.from_branch:
            if params.from_branch not in _head_names(repo):
                raise ResourceNotFoundError(f"Source branch '{params.from_branch}' not found")
            source_name = params.from_branch
            source_commit = repo.heads[params.from_branch].commit
        else:
            if not repo.head.is_valid():
                raise ResourceNotFoundError("Source branch 'HEAD' not found")
            source_name = _current_branch(repo) or "HEAD"
            source_commit = repo.head.commit

        if params.branch in _head_names(repo):
            raise ToolValidationError(
                f"Branch '{params.branch}' already exists",
                operation=params.operation.value,
                field="branch",
            )

        repo.create_head(params.branch, source_commit)
        return f"Successfully created branch '{params.branch}' from '{source_name}'"

    async def git_checkout(self, params: GitCheckoutParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._checkout)

    def _checkout(self, repo: Repo, params: GitCheckoutParameters) -> str:
        self._require_branch(repo, params.branch_name)
        repo.git.checkout(params.branch_name, force=True)
        return f"Successfully checked out branch '{params.branch_name}'"

    async def git_delete_branch(
        self, params: GitDeleteBranchParameters, context: CallContext
    ) -> str:
        return await self._in_repository(params, self._delete_branch)

    def _delete_branch(self, repo: Repo, params: GitDeleteBranchParameters) -> str:
        self._require_branch(repo, params.branch_name)
        if params.branch_name == _current_branch(repo):
            raise ToolValidationError(
                "Cannot delete the current HEAD branch",
                operation=params.operation.value,
                field="branchName",
            )
        repo.delete_head(params.branch_name, force=True)
        return f"Successfully deleted branch '{params.branch_name}'"

    async def git_merge(self, params: GitMergeParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._merge)

    def _conflict_report(self, repo: Repo, branch: str, paths: list[str]) -> str:
        lines = [f"Merge conflicts detected ({len(paths)} files):"]
        for path in paths:
            lines.append(f"\nFile: {path}")
            try:
                diff = repo.git.diff("HEAD", branch, "--", path)
                lines.append("Changes:")
                if diff:
                    lines.append(diff)
            except GitCommandError as e:
                lines.append(f"Unable to compute detailed changes: {e.stderr}")
            lines.append(CONFLICT_SEPARATOR)
        return "\n".join(lines)

    def _abort_merge(self, repo: Repo) -> None:
        if not os.path.exists(os.path.join(repo.git_dir, "MERGE_HEAD")):
            return
        try:
            repo.git.merge("--abort")
        except GitCommandError:
            logger.warning("git merge --abort failed, resetting hard")
            repo.git.reset("--hard", "HEAD")

    def _merge(self, repo: Repo, params: GitMergeParameters) -> str:
        branch = params.branch_name
        self._require_branch(repo, branch)
        if not repo.head.is_valid():
            raise ResourceNotFoundError("Current branch has no commits")

        head_commit = repo.head.commit
        target_commit = repo.heads[branch].commit
        if repo.is_ancestor(target_commit, head_commit):
            return "Already up to date. No merge necessary."
        fast_forward = repo.is_ancestor(head_commit, target_commit)

        args = ["--no-edit", "-m", params.commit_message or f"Merge branch '{branch}'"]
        strategy = MERGE_STRATEGY_OPTIONS.get(params.operation)
        if strategy:
            args.extend(["-X", strategy])
        args.append(branch)

        try:
            self._git(repo).merge(*args)
        except GitCommandError as e:
            conflicted = sorted(repo.index.unmerged_blobs())
            if not conflicted:
                self._abort_merge(repo)
                raise GitOperationError(self._redact(f"Merge failed: {e.stderr or e}")) from e

            report = self._conflict_report(repo, branch, conflicted)
            if params.operation == GitMergeOperation.MERGE_REPORT_ONLY:
                logger.info(f"Merge of '{branch}' left with {len(conflicted)} conflicted files")
                return f"Merge conflicts details:\n{report}"
            self._abort_merge(repo)
            return f"Merge aborted due to conflicts:\n{report}"

        if fast_forward:
            return f"Fast-forward merge of '{branch}' completed successfully"
        return f"Non-fast-forward merge of '{branch}' completed successfully"

    async def git_conflicts(self, params: GitConflictsParameters, context: CallContext) -> str:
        return await self._in_repository(params, self._conflicts)

    def _conflicts(self, repo: Repo, params: GitConflictsParameters) -> str:
        unmerged = repo.index.unmerged_blobs()
        if not unmerged:
            return "No conflicts found in the repository."

        lines = ["Found the following conflicts:", ""]
        for path in sorted(unmerged):
            stages = {stage: blob.hexsha for stage, blob in unmerged[path]}
            lines.append(f"File path: {path}")
            lines.append(f"  Ancestor version: {stages.get(1, 'none')}")
            lines.append(f"  Ours version: {stages.get(2, 'none')}")
            lines.append(f"  Theirs version: {stages.get(3, 'none')}")
            lines.append("")
        return "\n".join(lines)
