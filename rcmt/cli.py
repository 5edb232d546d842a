"""Command line interface for rcmt."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .config import DEFAULT_MODELS, describe_provider, load_config, save_config
from .core import RED, RESET, YELLOW, GREEN, CYAN, RewriteWorkflow
from .exceptions import ConfigError, GitError, RewriteCMTError
from .git import GitRepo, find_git_repo_root
from .hooks import install_hooks

EXAMPLES = """
Examples:
  # Dry run to preview changes
  $ rcmt --dry-run

  # Process only the last 10 commits
  $ rcmt --max-commits 10

  # Process all commits, including well-formed ones
  $ rcmt --no-skip-well-formed

  # Custom quality threshold (default is 7)
  $ rcmt --min-quality-score 8

  # Custom template and language
  $ rcmt --template "[JIRA-123] feat: message" --language es

  # Local model through Ollama
  $ rcmt --provider ollama --model llama3.2

  # Message for staged changes (used by the git hook)
  $ rcmt --staged

Important:
  This tool rewrites git history. Work on a separate branch, keep the
  backup branch until you are satisfied and push with --force-with-lease.
"""


def _quality_score(value: str) -> int:
    score = int(value)
    if not 1 <= score <= 10:
        raise argparse.ArgumentTypeError("must be between 1 and 10")
    return score


def _non_negative(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


class CLI:
    """Argument parsing and exit-code mapping around RewriteWorkflow."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="rcmt",
            description="AI-powered git commit message rewriter",
            epilog=EXAMPLES,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        parser.add_argument(
            "--provider",
            choices=sorted(DEFAULT_MODELS),
            help="Text generation provider (auto-detected from API key env vars)",
        )
        parser.add_argument("-m", "--model", help="Model to use")
        parser.add_argument("--endpoint", help="Provider base URL")
        parser.add_argument("--api-key-env", help="Environment variable holding the API key")
        parser.add_argument(
            "-b", "--branch", help="Branch to rewrite (defaults to current branch)"
        )
        parser.add_argument("--repo-path", help="Repository path (defaults to cwd)")
        parser.add_argument(
            "-d",
            "--dry-run",
            action="store_true",
            help="Show what would be changed without modifying the repository",
        )
        parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")
        parser.add_argument(
            "--max-commits",
            type=_non_negative,
            help="Process only the last N commits",
        )
        parser.add_argument(
            "--skip-backup",
            action="store_true",
            help="Skip creating a backup branch (not recommended)",
        )
        parser.add_argument(
            "--no-skip-well-formed",
            dest="skip_well_formed",
            action="store_false",
            help="Process all commits, even well-formed ones",
        )
        parser.add_argument(
            "--min-quality-score",
            type=_quality_score,
            help="Minimum quality score (1-10) to consider well-formed (default 7)",
        )
        parser.add_argument(
            "-t",
            "--template",
            help='Custom message template (e.g. "[JIRA-XXX] type: message")',
        )
        parser.add_argument("-l", "--language", help="Language for generated messages")
        parser.add_argument(
            "-p",
            "--prompt",
            dest="custom_prompt",
            help="Custom instruction replacing the default message rules",
        )
        parser.add_argument(
            "-y",
            "--yes",
            dest="assume_yes",
            action="store_true",
            help="Answer yes to every confirmation (unattended runs)",
        )
        parser.add_argument(
            "--staged",
            action="store_true",
            help="Print a message for staged changes (for git hooks)",
        )
        parser.add_argument(
            "--install-hooks",
            action="store_true",
            help="Install git hooks into the current repository",
        )
        parser.add_argument(
            "--save-config",
            action="store_true",
            help="Persist provider, model, template and language to .rcmt/config.json",
        )
        return parser

    def _overrides(self, parsed: argparse.Namespace) -> dict[str, Any]:
        return {
            "provider": parsed.provider,
            "model": parsed.model,
            "endpoint": parsed.endpoint,
            "api_key_env": parsed.api_key_env,
            "branch": parsed.branch,
            "repo_path": parsed.repo_path,
            "dry_run": parsed.dry_run,
            "verbose": parsed.verbose,
            "max_commits": parsed.max_commits,
            "skip_backup": parsed.skip_backup,
            "skip_well_formed": parsed.skip_well_formed,
            "min_quality_score": parsed.min_quality_score,
            "template": parsed.template,
            "language": parsed.language,
            "custom_prompt": parsed.custom_prompt,
            "assume_yes": parsed.assume_yes,
        }

    def _print_error(self, message: str) -> None:
        print(f"{RED}Error: {message}{RESET}", file=sys.stderr)

    def _repo_root(self, parsed: argparse.Namespace) -> Path:
        start = Path(parsed.repo_path) if parsed.repo_path else None
        return find_git_repo_root(start) or Path(parsed.repo_path or ".")

    def run(self, args: Optional[list[str]] = None) -> int:
        try:
            parsed = self.parser.parse_args(args)
        except SystemExit as e:
            return int(e.code or 0)

        logging.basicConfig(
            level=logging.DEBUG if parsed.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        repo_root = self._repo_root(parsed)
        try:
            config = load_config(repo_root=repo_root, overrides=self._overrides(parsed))
        except (ValueError, ConfigError) as e:
            self._print_error(f"Invalid configuration: {e}")
            return 2

        if parsed.install_hooks:
            return self._install_hooks(config)

        if parsed.save_config:
            path = save_config(config, repo_root)
            print(f"{GREEN}Saved configuration to {path}{RESET}")
            print(f"Provider: {describe_provider(config.provider)}")
            return 0

        try:
            workflow = RewriteWorkflow(config=config)
            if parsed.staged:
                print(workflow.generate_for_staged())
                return 0
            workflow.run()
            return 0
        except ConfigError as e:
            self._print_error(str(e))
            env_name = config.api_key_env or "the provider API key variable"
            print(
                f"{YELLOW}Set {env_name} or choose another provider with --provider.{RESET}",
                file=sys.stderr,
            )
            return 2
        except RewriteCMTError as e:
            self._print_error(str(e))
            if parsed.verbose:
                logging.getLogger(__name__).debug("failure details", exc_info=True)
            return 1
        except KeyboardInterrupt:
            print(f"\n{YELLOW}Interrupted.{RESET}", file=sys.stderr)
            return 130

    def _install_hooks(self, config) -> int:
        try:
            repo = GitRepo(config.git_repo_path, config)
            results = install_hooks(repo)
        except GitError as e:
            self._print_error(str(e))
            return 1
        print(f"{CYAN}Installing git hooks{RESET}")
        for name, status in results.items():
            color = GREEN if status == "installed" else YELLOW
            suffix = "" if status == "installed" else " (already exists)"
            print(f"  {color}{name} - {status}{suffix}{RESET}")
        if any(status == "installed" for status in results.values()):
            print("\nOptional settings:")
            print('  git config hooks.commitTemplate "(feat): message"')
            print('  git config hooks.commitLanguage "en"')
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
