"""End-to-end tests for the upgrade orchestrator."""
import json

import pytest

from conftest import LEGACY_SERVER_ERROR, requires_node, write
from treeline import fs
from treeline.models import ProjectRef
from treeline.upgrade import NodeScriptRunner, run_upgrade
from treeline.upgrade.orchestrator import UNIT_NAMES
from treeline.upgrade.patcher import template_path
from treeline.upgrade.probe import NEGOTIATE, SERVER_ERROR
from treeline.upgrade.results import FAILED, OK, SKIPPED

pytestmark = pytest.mark.asyncio

API = "https://api.treeline.test"


class NoNetworkLinker:
    def __init__(self):
        self.calls = 0

    async def __call__(self, **kwargs):
        self.calls += 1
        return {}


def _snapshot(root):
    return {str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()}


class TestRunUpgrade:
    async def test_reports_every_unit(self, app_dir, runner):
        report = await run_upgrade(ProjectRef(app_dir, "app"), api_base_url=API, runner=runner, linker=NoNetworkLinker())
        assert [r.name for r in report.results] == list(UNIT_NAMES)
        assert report.ok

    async def test_full_app_upgrade(self, app_dir, runner):
        report = await run_upgrade(ProjectRef(app_dir, "app"), api_base_url=API, runner=runner, linker=NoNetworkLinker())
        for name in UNIT_NAMES[:5]:
            assert report.get(name).status == OK, name
        assert report.get("updateLinkFile").status == SKIPPED
        for target in (SERVER_ERROR, NEGOTIATE):
            assert (app_dir / target.relpath).read_text() == template_path(target).read_text()
        assert not (app_dir / "api" / "machines").exists()
        assert not (app_dir / "node_modules" / "sails-hook-machines").exists()
        assert not (app_dir / "node_modules" / "postinstall.js").exists()
        assert "sails-hook-machines" not in json.loads((app_dir / "package.json").read_text())["dependencies"]

    async def test_second_run_changes_nothing(self, app_dir, runner):
        project = ProjectRef(app_dir, "app")
        await run_upgrade(project, api_base_url=API, runner=runner, linker=NoNetworkLinker())
        before = _snapshot(app_dir)
        report = await run_upgrade(project, api_base_url=API, runner=runner, linker=NoNetworkLinker())
        assert _snapshot(app_dir) == before
        assert all(r.status == SKIPPED for r in report.results)

    async def test_machinepack_only_removes_postinstall(self, app_dir, runner):
        before = _snapshot(app_dir)
        report = await run_upgrade(
            ProjectRef(app_dir, "machinepack"), api_base_url=API, runner=runner, linker=NoNetworkLinker()
        )
        after = _snapshot(app_dir)
        assert runner.calls == []
        assert set(before) - set(after) == {"node_modules/postinstall.js"}
        assert report.get("removePostinstall").status == OK
        for name in UNIT_NAMES[:4]:
            assert report.get(name).status == SKIPPED

    async def test_unit_failures_do_not_fail_upgrade(self, app_dir, runner, monkeypatch):
        def boom(path):
            raise fs.FileSystemError(path, "Remove failed (Permission denied)")

        monkeypatch.setattr(fs, "rmrf", boom)
        report = await run_upgrade(ProjectRef(app_dir, "app"), api_base_url=API, runner=runner, linker=NoNetworkLinker())
        assert report.ok
        failed = {r.name for r in report.failed}
        assert failed == {"removeApiMachinesFolder", "removeSailsHookMachines", "removePostinstall"}
        assert report.get(SERVER_ERROR.name).status == OK

    async def test_unexpected_exception_becomes_failed_result(self, app_dir, runner):
        async def exploding_linker(**kwargs):
            raise RuntimeError("kaboom")

        write(app_dir / "treeline.json", json.dumps({"id": "a-1", "fullName": "x/y"}))
        report = await run_upgrade(ProjectRef(app_dir, "app"), api_base_url=API, runner=runner, linker=exploding_linker)
        result = report.get("updateLinkFile")
        assert result.status == FAILED
        assert "kaboom" in result.detail

    async def test_no_link_file_makes_no_network_call(self, tmp_path, runner):
        linker = NoNetworkLinker()
        report = await run_upgrade(ProjectRef(tmp_path, "app"), api_base_url=API, runner=runner, linker=linker)
        assert linker.calls == 0
        assert report.get("updateLinkFile").status == SKIPPED
        assert report.failed == []

    async def test_report_to_dict(self, tmp_path, runner):
        report = await run_upgrade(ProjectRef(tmp_path, "app"), api_base_url=API, runner=runner, linker=NoNetworkLinker())
        data = report.to_dict()
        assert data["type"] == "app"
        assert len(data["results"]) == len(UNIT_NAMES)


@requires_node
class TestWithNode:
    async def test_legacy_server_error_replaced(self, tmp_path):
        write(tmp_path / SERVER_ERROR.relpath, LEGACY_SERVER_ERROR)
        report = await run_upgrade(
            ProjectRef(tmp_path, "app"), api_base_url=API, runner=NodeScriptRunner(), linker=NoNetworkLinker()
        )
        assert report.get(SERVER_ERROR.name).status == OK
        assert (tmp_path / SERVER_ERROR.relpath).read_text() == template_path(SERVER_ERROR).read_text()
