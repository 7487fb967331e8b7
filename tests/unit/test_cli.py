"""Unit tests for the CLI entrypoint (runtime mocked)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

import label_sync.cli as cli
from label_sync.errors import RetrievalError
from label_sync.events import DispatchResult, EventDispatcher
from label_sync.models import Label
from label_sync.reconciler import (
    ChangeKind,
    LabelChange,
    LabelPlan,
    Reconciler,
    ReconcileReport,
)
from label_sync.runtime import LabelSyncRuntime


@pytest.fixture
def runtime(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Mock:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LABEL_SYNC_GITHUB_TOKEN", "test-token")
    monkeypatch.setattr(cli, "configure_logging", lambda *_a, **_k: None)

    runtime = Mock(spec=LabelSyncRuntime)
    runtime.reconciler = Mock(spec=Reconciler)
    runtime.dispatcher = Mock(spec=EventDispatcher)
    monkeypatch.setattr(cli, "build_runtime", lambda _settings: runtime)
    return runtime


def test_plan_prints_changes(runtime: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    runtime.reconciler.plan.return_value = LabelPlan(
        repository="o/r",
        changes=(
            LabelChange(
                kind=ChangeKind.CREATE,
                name="api: new",
                label=Label(name="api: new", color="333333", description="Y"),
            ),
            LabelChange(kind=ChangeKind.DELETE, name="bug"),
        ),
    )

    assert cli.main(["plan", "--repo", "o/r"]) == 0

    out = capsys.readouterr().out
    assert "o/r: 2 change(s)" in out
    assert "create 'api: new' (color=333333, description='Y')" in out
    assert "delete 'bug'" in out
    runtime.reconciler.plan.assert_called_once_with("o", "r")
    runtime.reconciler.reconcile.assert_not_called()
    runtime.close.assert_called_once_with()


def test_reconcile_exit_code_reflects_failures(
    runtime: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    plan = LabelPlan(repository="o/r")
    runtime.reconciler.reconcile.return_value = ReconcileReport(
        repository="o/r", plan=plan, applied=1, failed=["api: new"]
    )

    assert cli.main(["reconcile", "--repo", "o/r"]) == 1
    assert "o/r: 1 applied, 0 already present, 1 failed" in capsys.readouterr().out


def test_sync_all_reports_failed_repositories(
    runtime: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    runtime.dispatcher.sync_all.return_value = DispatchResult(
        event="sync-all", handled=True, failed_repositories=["o/broken"]
    )

    assert cli.main(["sync-all"]) == 1
    captured = capsys.readouterr()
    assert "o/broken: reconcile failed" in captured.err
    assert "Reconciled 0 repositories (1 failed)" in captured.out


def test_retrieval_error_exits_nonzero(runtime: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    runtime.reconciler.reconcile.side_effect = RetrievalError(source="apis.json", detail="403")

    assert cli.main(["reconcile", "--repo", "o/r"]) == 1
    assert "Failed to retrieve apis.json" in capsys.readouterr().err
    runtime.close.assert_called_once_with()


def test_invalid_repo_argument_is_rejected(runtime: Mock) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["reconcile", "--repo", "not-a-repo"])

    assert exc_info.value.code == 2


def test_missing_token_is_configuration_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LABEL_SYNC_GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda *_a, **_k: None)

    assert cli.main(["reconcile", "--repo", "o/r"]) == 2
    assert "LABEL_SYNC_GITHUB_TOKEN" in capsys.readouterr().err


def test_serve_runs_uvicorn(runtime: Mock, monkeypatch: pytest.MonkeyPatch) -> None:
    run = Mock()
    monkeypatch.setattr(cli.uvicorn, "run", run)

    assert cli.main(["serve", "--port", "9000"]) == 0

    kwargs = run.call_args.kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9000
