"""Command-line maintenance for synthetic commits.

``repopin scan`` reports how many marked commits remain in each repository
and ``repopin cleanup`` removes them. Both read ``REPOPIN_GITHUB_TOKEN``.
"""

from __future__ import annotations

import argparse
import asyncio
import typing as typ

import msgspec

from repopin.common.slug import is_valid_repo_slug
from repopin.github.client import GitHubRestClient, GitHubRestConfig
from repopin.github.errors import GitHubConfigError
from repopin.github.models import RepositoryReference
from repopin.sync.constants import DEFAULT_CLEANUP_WINDOW
from repopin.sync.maintenance import MarkerScanner, cleanup_repositories
from repopin.sync.rewriter import HistoryRewriter

if typ.TYPE_CHECKING:
    from repopin.github.client import GitHubGitClient


def _repository_arg(value: str) -> RepositoryReference:
    if not is_valid_repo_slug(value):
        msg = f"invalid repository {value!r}; expected OWNER/NAME"
        raise argparse.ArgumentTypeError(msg)
    return RepositoryReference.from_slug(value)


def _window_arg(value: str) -> int:
    try:
        window = int(value)
    except ValueError as exc:
        msg = f"window must be an integer, got {value!r}"
        raise argparse.ArgumentTypeError(msg) from exc
    if window < 1:
        msg = f"window must be positive, got {window}"
        raise argparse.ArgumentTypeError(msg)
    return window


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the ``repopin`` command."""
    parser = argparse.ArgumentParser(prog="repopin", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("scan", "Count synthetic commits per repository"),
        ("cleanup", "Remove synthetic commits from recent history"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument(
            "repositories",
            nargs="+",
            type=_repository_arg,
            metavar="OWNER/NAME",
        )
        command.add_argument(
            "--window",
            type=_window_arg,
            default=DEFAULT_CLEANUP_WINDOW,
            help="Number of recent commits to inspect (pages beyond 100)",
        )
        command.add_argument(
            "--json", action="store_true", help="Print results as JSON"
        )
    return parser


async def _scan(
    client: GitHubGitClient, args: argparse.Namespace
) -> tuple[int, list[typ.Any]]:
    reports = await MarkerScanner(client, window=args.window).scan(args.repositories)
    if not args.json:
        for report in reports:
            print(
                f"{report.repository}: {report.marker_commits} synthetic "
                f"of {report.total_commits} commits"
            )
    return 0, reports


async def _cleanup(
    client: GitHubGitClient, args: argparse.Namespace
) -> tuple[int, list[typ.Any]]:
    outcomes = await cleanup_repositories(
        HistoryRewriter(client, window=args.window), args.repositories
    )
    if not args.json:
        for outcome in outcomes:
            if outcome.result is not None:
                backup = outcome.result.backup_ref or "none"
                print(
                    f"{outcome.repository}: removed {outcome.result.removed_count} "
                    f"(backup {backup})"
                )
            else:
                print(f"{outcome.repository}: failed ({outcome.error})")
    failed = any(not outcome.succeeded for outcome in outcomes)
    return (1 if failed else 0), outcomes


async def _run(args: argparse.Namespace, client: GitHubGitClient) -> int:
    try:
        if args.command == "scan":
            code, payload = await _scan(client, args)
        else:
            code, payload = await _cleanup(client, args)
    finally:
        await client.aclose()
    if args.json:
        print(msgspec.json.encode(payload).decode())
    return code


def main(
    argv: list[str] | None = None,
    *,
    client: GitHubGitClient | None = None,
) -> int:
    """Run a maintenance command.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.
    client : GitHubGitClient | None, optional
        Client to use instead of one built from ``REPOPIN_GITHUB_TOKEN``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when any cleanup failed or no token is
        configured.

    """
    args = build_parser().parse_args(argv)
    if client is None:
        try:
            client = GitHubRestClient(GitHubRestConfig.from_env())
        except GitHubConfigError as exc:
            print(f"repopin: {exc}")
            return 1
    return asyncio.run(_run(args, client))


if __name__ == "__main__":
    raise SystemExit(main())
