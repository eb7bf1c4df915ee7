"""
CLI entry point — argument parsing and main execution flow.
"""

import argparse
import logging
import sys

from tqdm import tqdm

from .config import Config
from .cli_display import UsageTracker, setup_logger, print_stream_fragment
from .editing.prompts import PromptLibrary
from .llm.base import LLMError
from .llm.openai_client import OpenAIClient
from .units.errors import UnitError
from .workflow import EditSession, WorkflowError
from . import git_utils

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="uniteditor — edit Go projects one declaration at a time")
    parser.add_argument("--prompt", default="",
                        help="The change to make")
    parser.add_argument("--inter", action="store_true",
                        help="Read the prompt from stdin")
    parser.add_argument("--files", default="",
                        help="Comma-separated extra files or directories to include")
    parser.add_argument("--split", nargs="?", const="", default=None, metavar="FILES",
                        help="Split comma-separated Go files (default: every *.go "
                             "in the project root) into units and exit")
    parser.add_argument("--unsplit", nargs="?", const="", default=None, metavar="FILES",
                        help="Reassemble comma-separated Go files (default: every "
                             "*.go in the project root) from their units and exit")
    parser.add_argument("--merge", action="store_true",
                        help="Merge the work branch into the main branch")
    parser.add_argument("--rm", action="store_true",
                        help="Discard the current branch and return to the main branch")
    parser.add_argument("--config", default=None,
                        help="Path to .uniteditor.yaml config file")
    parser.add_argument("--no-stream", action="store_true",
                        help="Disable streaming responses")
    parser.add_argument("--max-continuations", type=int, default=None,
                        help="Maximum continuation requests for a truncated change-set")
    parser.add_argument("--branchprompt", default=None,
                        help="Template file for the branch name prompt")
    parser.add_argument("--changesprompt", default=None,
                        help="Template file for the changes prompt")
    parser.add_argument("--commitmsgprompt", default=None,
                        help="Template file for the commit message prompt")
    return parser


def _apply_overrides(cfg: Config, args: argparse.Namespace) -> None:
    if args.no_stream:
        cfg.STREAM_RESPONSES = False
    if args.max_continuations is not None:
        cfg.MAX_CONTINUATIONS = args.max_continuations
    for name, path in (("branch_name", args.branchprompt),
                       ("changes", args.changesprompt),
                       ("commit_message", args.commitmsgprompt)):
        if path:
            cfg.PROMPT_FILES[name] = path


def _make_session(cfg: Config, usage: UsageTracker) -> EditSession:
    llm_kwargs = dict(
        max_retries=cfg.LLM_MAX_RETRIES,
        retry_delay=cfg.LLM_RETRY_DELAY,
        usage=usage,
    )
    low = OpenAIClient(base_url=cfg.OR_BASE, model=cfg.OR_LOW,
                       api_key=cfg.OR_TOKEN, **llm_kwargs)
    high = OpenAIClient(base_url=cfg.OR_BASE, model=cfg.OR_HIGH,
                        api_key=cfg.OR_TOKEN, **llm_kwargs)
    return EditSession(cfg, low, high, prompts=PromptLibrary(cfg.PROMPT_FILES))


def _file_list(value: str) -> list[str]:
    return [f.strip() for f in value.split(",") if f.strip()]


def _split(session: EditSession, paths: list[str]) -> None:
    for path in tqdm(paths or session.go_files(), unit="file", desc="Splitting"):
        for decomposition in session.split_files([path]):
            logger.info(f"Split {path} into {len(decomposition.units)} units")


def _unsplit(session: EditSession, paths: list[str]) -> None:
    for path in tqdm(paths or session.go_files(), unit="file", desc="Unsplitting"):
        session.unsplit_files([path])
        logger.info(f"Reassembled {path}")


def _report(result) -> None:
    extraction = result.extraction
    if extraction is not None:
        print(f"\nChange-set: {len(extraction)} records ({extraction.status.value})")
        if extraction.continuations:
            print(f"  continuations: {extraction.continuations}")
        if extraction.discarded:
            print(f"  discarded fragments: {extraction.discarded}")
    applied = result.applied
    print(f"  units updated: {len(applied.units_updated)}, "
          f"units deleted: {len(applied.units_deleted)}, "
          f"files written: {len(applied.files_written)}, "
          f"files deleted: {len(applied.files_deleted)}")
    for err in applied.errors:
        print(f"  [ERROR] {err}")

    if not result.build_ok:
        print(f"\n  [ERROR] Build failed on branch {result.branch}:\n{result.build_output}")
        return
    if result.diff:
        print(result.diff)
    print(f"\nCommitted on branch {result.branch}")


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # ── 0. Load config ──
    cfg = Config.load(args.config)
    _apply_overrides(cfg, args)
    setup_logger(cfg.LOG_DIR)

    usage = UsageTracker(cfg.PRICING)
    session = _make_session(cfg, usage)

    try:
        # ── 1. Pure store commands ──
        if args.split is not None:
            _split(session, _file_list(args.split))
            return 0
        if args.unsplit is not None:
            _unsplit(session, _file_list(args.unsplit))
            return 0

        # ── 2. Branch housekeeping ──
        if args.rm:
            print(session.remove_current())
            return 0

        missing = cfg.missing()
        if missing:
            print(f"\n  [ERROR] Missing required settings: {', '.join(missing)}\n"
                  "  Set them as env vars or add them to .uniteditor.yaml.\n")
            return 2

        if not git_utils.is_git_repo():
            print("\n  [ERROR] Not inside a git repository.\n")
            return 2

        if args.merge and not args.prompt and not args.inter:
            print(session.merge_current())
            return 0

        # ── 3. Edit run ──
        prompt = args.prompt
        if args.inter:
            prompt = sys.stdin.read()
        if not prompt.strip():
            parser.error("a prompt is required (use --prompt or --inter)")

        extra_files = _file_list(args.files)
        on_fragment = print_stream_fragment if cfg.STREAM_RESPONSES else None
        result = session.run(prompt, extra_files=extra_files,
                             merge=args.merge, on_fragment=on_fragment)
        _report(result)
        return 0 if result.build_ok else 1

    except UnitError as e:
        logger.error(f"Unit store error: {e}")
        print(f"\n  [ERROR] {e}\n")
        return 1
    except LLMError as e:
        logger.error(f"LLM error: {e}")
        print(f"\n  [ERROR] {e}\n")
        return 1
    except WorkflowError as e:
        logger.error(f"Workflow error: {e}")
        print(f"\n  [ERROR] {e}\n")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        print(f"\n  [ERROR] {e}\n")
        return 1
    finally:
        if usage.call_count:
            print(f"\n{usage.summary()}")


if __name__ == "__main__":
    sys.exit(main())
