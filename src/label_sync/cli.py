"""CLI entrypoint for label-sync.

Commands:
- reconcile: apply the label plan to one repository
- plan: print the label plan for one repository without applying it
- sync-all: refresh the base labels and reconcile every tracked repository
- serve: run the webhook receiver
"""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from pydantic import ValidationError

from label_sync import __version__
from label_sync.config import LabelSyncSettings
from label_sync.errors import LabelSyncError
from label_sync.logging import configure_logging
from label_sync.runtime import LabelSyncRuntime, build_runtime

logger = logging.getLogger(__name__)


def _split_repo(value: str) -> tuple[str, str]:
    parts = value.strip().split("/")
    if len(parts) != 2 or not all(parts):
        raise argparse.ArgumentTypeError(f"expected 'owner/repo', got {value!r}")
    return parts[0], parts[1]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="label-sync",
        description="Synchronize GitHub repository labels with the shared label metadata",
    )
    parser.add_argument("--version", action="version", version=f"label-sync {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("reconcile", "Create, update and delete labels on one repository"),
        ("plan", "Show the label changes for one repository without applying them"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--repo",
            "--repository",
            dest="repository",
            type=_split_repo,
            required=True,
            help="Target repository in the form 'owner/repo'",
        )

    subparsers.add_parser(
        "sync-all",
        help="Refresh the base labels, then reconcile every repository in the tracked registry",
    )

    serve = subparsers.add_parser("serve", help="Run the GitHub webhook receiver")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind")

    return parser


def _run(args: argparse.Namespace, runtime: LabelSyncRuntime) -> int:
    if args.command == "plan":
        owner, repo = args.repository
        plan = runtime.reconciler.plan(owner, repo)
        if plan.is_empty:
            print(f"{plan.repository}: labels are up to date")
            return 0
        print(f"{plan.repository}: {len(plan.changes)} change(s)")
        for change in plan.changes:
            print(f"  {change.describe()}")
        return 0

    if args.command == "reconcile":
        owner, repo = args.repository
        report = runtime.reconciler.reconcile(owner, repo)
        print(
            f"{report.repository}: {report.applied} applied, "
            f"{report.skipped_existing} already present, {len(report.failed)} failed"
        )
        return 0 if report.ok else 1

    result = runtime.dispatcher.sync_all()
    for failed in result.failed_repositories:
        print(f"{failed}: reconcile failed", file=sys.stderr)
    print(
        f"Reconciled {len(result.reports)} repositories "
        f"({len(result.failed_repositories)} failed)"
    )
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = LabelSyncSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        from label_sync.server.app import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)
        return 0

    try:
        runtime = build_runtime(settings)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        return _run(args, runtime)
    except LabelSyncError as e:
        logger.exception("Command failed", extra={"command": args.command})
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        runtime.close()


if __name__ == "__main__":
    raise SystemExit(main())
