#!/usr/bin/env python3
"""Programmatic label reconciliation example.

This demonstrates using the label-sync components directly:

* load settings from `.env`
* preview the label plan for a repository
* optionally apply it

Repository selection is passed as an argument (not read from `.env`).
"""

from __future__ import annotations

import argparse
from typing import Sequence

from label_sync.config import LabelSyncSettings
from label_sync.logging import configure_logging
from label_sync.runtime import build_runtime


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview or apply labels (programmatic example).")
    parser.add_argument("--owner", required=True, help="Repository owner")
    parser.add_argument("--repo", required=True, help="Repository name")
    parser.add_argument("--apply", action="store_true", help="Apply the plan after printing it")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = LabelSyncSettings()
    configure_logging(settings.log_level)

    runtime = build_runtime(settings)
    try:
        plan = runtime.reconciler.plan(args.owner, args.repo)
        for change in plan.changes:
            print(change.describe())
        if not args.apply:
            return 0

        report = runtime.reconciler.reconcile(args.owner, args.repo)
        print(report.summary())
        return 0 if report.ok else 1
    finally:
        runtime.close()


if __name__ == "__main__":
    raise SystemExit(main())
