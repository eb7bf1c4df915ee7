"""
Edit workflow — split, ask for a change-set, land it, reassemble, build
and commit.

The engine pieces (decomposer, store, reconciler, composer, extractor)
are wired together here; git and the build are external collaborators
reached through :mod:`git_utils`.
"""

from __future__ import annotations

import glob
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Optional

from . import git_utils
from .editing.applier import ApplyResult, apply_changes
from .editing.continuation import ContinuationRequestor
from .editing.extractor import ChangeSetExtractor, ExtractionResult
from .editing.prompts import PromptLibrary
from .units.composer import Composer
from .units.decomposer import Decomposer, Decomposition
from .units.reconciler import ManifestReconciler
from .units.store import UnitStore

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Raised when an external step (git, build) blocks the workflow."""


@dataclass
class RunResult:
    """Outcome of one end-to-end edit run."""
    branch: str = ""
    extraction: Optional[ExtractionResult] = None
    applied: ApplyResult = field(default_factory=ApplyResult)
    build_ok: bool = False
    build_output: str = ""
    committed: bool = False
    diff: str = ""


class EditSession:
    """One edit session over a project; assumes exclusive use of its store."""

    def __init__(
        self,
        config,
        low_client,
        high_client,
        store: Optional[UnitStore] = None,
        prompts: Optional[PromptLibrary] = None,
        project_root: Optional[str] = None,
    ) -> None:
        self.config = config
        self.low_client = low_client
        self.high_client = high_client
        self.project_root = os.path.abspath(project_root or os.getcwd())
        self.project_name = os.path.basename(self.project_root)
        self.store = store or UnitStore(
            os.path.join(self.project_root, config.EDITOR_DIR),
            config.UNIT_EXTENSION,
            base=self.project_root,
        )
        self.prompts = prompts or PromptLibrary(config.PROMPT_FILES)
        self.decomposer = Decomposer()
        self.composer = Composer(self.store)
        self.reconciler = ManifestReconciler(self.store)

    # ------------------------------------------------------------------
    # Split / unsplit
    # ------------------------------------------------------------------

    def go_files(self) -> list[str]:
        """Go files in the project root, sorted."""
        return sorted(glob.glob(os.path.join(self.project_root, "*.go")))

    def split_files(self, paths: list[str]) -> list[Decomposition]:
        return [self.decomposer.split_file(p, self.store) for p in paths]

    def unsplit_files(self, paths: list[str]) -> list[str]:
        return [self.composer.unsplit_file(p) for p in paths]

    # ------------------------------------------------------------------
    # Prompt inputs
    # ------------------------------------------------------------------

    def unit_files(self) -> list[dict]:
        """Every stored unit as ``{"filepath", "content"}`` in manifest order."""
        files: list[dict] = []
        for container in self.store.containers():
            manifest = self.store.read_manifest(container)
            for unit_id in manifest or ():
                unit = self.store.get(container, unit_id)
                if unit is None:
                    continue
                files.append({
                    "filepath": self._project_path(self.store.unit_path(container, unit_id)),
                    "content": unit.content,
                })
        return files

    def _project_path(self, path: str) -> str:
        return os.path.relpath(path, self.project_root).replace(os.sep, "/")

    @staticmethod
    def read_extra_files(paths: list[str]) -> list[dict]:
        """Read extra files (or whole directories) to show the service."""
        files: list[dict] = []

        def _add(path: str) -> None:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    files.append({"filepath": path, "content": f.read()})
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Error reading file %s: %s", path, exc)

        for path in paths:
            if os.path.isdir(path):
                for dirpath, dirnames, filenames in os.walk(path):
                    dirnames[:] = sorted(d for d in dirnames if d != ".git")
                    for name in sorted(filenames):
                        _add(os.path.join(dirpath, name))
            elif os.path.exists(path):
                _add(path)
            else:
                logger.warning("Error accessing file or directory %s", path)
        return files

    # ------------------------------------------------------------------
    # Generative steps
    # ------------------------------------------------------------------

    def generate_branch_name(self, prompt: str) -> str:
        text = self.prompts.render(
            "branch_name",
            prompt=prompt,
            project_name=self.project_name,
            current_branch=git_utils.get_current_branch(),
        )
        suggestion = self.low_client.complete(text)
        logger.info("Branch name suggestion: %s", suggestion)
        return git_utils.sanitize_branch_name(suggestion)

    def generate_commit_message(self, prompt: str) -> str:
        text = self.prompts.render(
            "commit_message", prompt=prompt, project_name=self.project_name)
        message = self.low_client.complete(text).strip()
        logger.info("Commit message suggestion: %s", message)
        return message

    def extractor_for(self, prompt: str) -> ChangeSetExtractor:
        requestor = ContinuationRequestor(
            self.high_client, self.prompts,
            task_prompt=prompt, project_name=self.project_name,
        )
        return ChangeSetExtractor(
            reconciler=self.reconciler,
            requestor=requestor,
            max_continuations=self.config.MAX_CONTINUATIONS,
        )

    def request_changes(
        self,
        prompt: str,
        files: list[dict],
        on_fragment: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Ask for a change-set and return the full raw response text."""
        text = self.prompts.render(
            "changes",
            prompt=prompt,
            project_name=self.project_name,
            files=json.dumps(files),
        )
        if not self.config.STREAM_RESPONSES:
            return self.high_client.complete(text)

        parts: list[str] = []
        for fragment in self.high_client.complete_stream(text):
            parts.append(fragment)
            if on_fragment is not None:
                on_fragment(fragment)
        raw = "".join(parts)
        logger.debug("Raw changes suggestion:\n%s", raw)
        return raw

    def generate_changes(
        self,
        prompt: str,
        files: list[dict],
        on_fragment: Optional[Callable[[str], None]] = None,
    ) -> ExtractionResult:
        raw = self.request_changes(prompt, files, on_fragment)
        return self.extractor_for(prompt).extract(raw)

    def apply(self, extraction: ExtractionResult) -> ApplyResult:
        return apply_changes(extraction.records, self.reconciler,
                             base_dir=self.project_root)

    # ------------------------------------------------------------------
    # End to end
    # ------------------------------------------------------------------

    def run(
        self,
        prompt: str,
        extra_files: Optional[list[str]] = None,
        merge: bool = False,
        on_fragment: Optional[Callable[[str], None]] = None,
    ) -> RunResult:
        result = RunResult()

        go_files = self.go_files()
        self.split_files(go_files)
        files = self.unit_files() + self.read_extra_files(extra_files or [])

        result.branch = self.generate_branch_name(prompt)
        ok, output = git_utils.checkout_branch(result.branch)
        if not ok:
            raise WorkflowError(f"Could not check out {result.branch}: {output}")

        result.extraction = self.generate_changes(prompt, files, on_fragment)
        result.applied = self.apply(result.extraction)

        self.unsplit_files(go_files)

        result.build_ok, result.build_output = git_utils.run_build(self.config.BUILD_COMMAND)
        if not result.build_ok:
            logger.error("Build failed:\n%s", result.build_output)
            return result

        ok, output = git_utils.commit_changes(self.generate_commit_message(prompt))
        if not ok:
            raise WorkflowError(f"Commit failed: {output}")
        result.committed = True
        result.diff = git_utils.show_diff(self.config.MAIN_BRANCH)

        if merge:
            ok, output = git_utils.merge_and_cleanup(result.branch, self.config.MAIN_BRANCH)
            if not ok:
                raise WorkflowError(output)
            logger.info(output)
        return result

    def merge_current(self, prompt: str = "") -> str:
        """Commit any pending work on the current branch and merge it."""
        branch = git_utils.get_current_branch()
        if git_utils.has_changes():
            message = self.generate_commit_message(prompt or f"Finish work on {branch}")
            ok, output = git_utils.commit_changes(message)
            if not ok:
                raise WorkflowError(f"Commit failed: {output}")
        ok, output = git_utils.merge_and_cleanup(branch, self.config.MAIN_BRANCH)
        if not ok:
            raise WorkflowError(output)
        return output

    def remove_current(self) -> str:
        ok, output = git_utils.remove_and_cleanup(
            git_utils.get_current_branch(), self.config.MAIN_BRANCH)
        if not ok:
            raise WorkflowError(output)
        return output
