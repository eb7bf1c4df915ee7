"""
Git integration — branch, commit, merge and cleanup helpers for the edit
workflow, plus the build check that gates a commit.
"""

import re
import shlex
import subprocess


def _run(cmd: list[str]) -> tuple[bool, str]:
    """Run a command and return ``(success, output)``."""
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=False,
        )
        output = (result.stdout + result.stderr).strip()
        return result.returncode == 0, output
    except OSError as e:
        return False, str(e)


def _run_git(*args: str) -> tuple[bool, str]:
    return _run(["git", *args])


def is_git_repo() -> bool:
    """Return ``True`` if the CWD is inside a git repository."""
    ok, _ = _run_git("rev-parse", "--is-inside-work-tree")
    return ok


def has_changes() -> bool:
    """Return ``True`` if there are uncommitted changes (staged or unstaged)."""
    ok, output = _run_git("status", "--porcelain")
    return ok and bool(output.strip())


def get_current_branch() -> str:
    """Return the name of the current branch, or ``"HEAD"`` on detached HEAD."""
    ok, output = _run_git("rev-parse", "--abbrev-ref", "HEAD")
    return output.strip() if ok else "HEAD"


def sanitize_branch_name(name: str) -> str:
    """Turn a suggested name into a branch-safe slug."""
    first_line = name.strip().splitlines()[0] if name.strip() else ""
    slug = re.sub(r"[^a-zA-Z0-9/_-]+", "-", first_line.strip("`'\" "))
    return slug.strip("-/").lower()[:60] or "edit"


def checkout_branch(branch_name: str) -> tuple[bool, str]:
    """Create and switch to *branch_name*, or switch if it already exists."""
    ok, output = _run_git("checkout", "-b", branch_name)
    if ok:
        return ok, output
    return _run_git("checkout", branch_name)


def commit_changes(message: str) -> tuple[bool, str]:
    """Stage all changes and commit with *message*."""
    _run_git("add", "-A")
    return _run_git("commit", "-m", message)


def show_diff(base_branch: str = "main") -> str:
    """Return the cached diff against *base_branch* (empty on failure)."""
    ok, output = _run_git("diff", "--cached", base_branch)
    return output if ok else ""


def merge_and_cleanup(branch_name: str, main_branch: str = "main") -> tuple[bool, str]:
    """Merge *branch_name* into *main_branch*, push, and delete the branch."""
    if branch_name == main_branch:
        return False, f"Cannot merge {main_branch} into itself."
    for args in (("checkout", main_branch),
                 ("merge", branch_name),
                 ("push",),
                 ("branch", "-D", branch_name)):
        ok, output = _run_git(*args)
        if not ok:
            return False, f"git {' '.join(args)} failed: {output}"
    return True, f"Branch {branch_name} merged into {main_branch}, pushed, and deleted."


def remove_and_cleanup(branch_name: str, main_branch: str = "main") -> tuple[bool, str]:
    """Stash work, switch to *main_branch* and delete *branch_name*."""
    if branch_name == main_branch:
        return False, f"Cannot delete {main_branch} branch."
    for args in (("stash",),
                 ("checkout", main_branch),
                 ("branch", "-D", branch_name)):
        ok, output = _run_git(*args)
        if not ok:
            return False, f"git {' '.join(args)} failed: {output}"
    return True, f"Branch {branch_name} deleted and moved back to {main_branch} branch."


def run_build(command: str = "make build") -> tuple[bool, str]:
    """Run the project build command."""
    return _run(shlex.split(command))
