"""
Shared pytest fixtures: project trees, keychains, a fake probe runner and a
mocked Treeline API (httpx.MockTransport).
"""
import json
import re
import shutil

import httpx
import pytest

from treeline.api import TreelineAPI
from treeline.config import CliConfig
from treeline.upgrade.probe import Invocation, ScriptRunner

LEGACY_SERVER_ERROR = """module.exports = function serverError (data) {
  var req = this.req;
  var res = this.res;
  if (_.isUndefined(data)) {
    return res.send(500);
  }
  return res.send(500, data);
};
"""

LEGACY_NEGOTIATE = """module.exports = function negotiate (err) {
  var res = this.res;
  var statusCode = err.status || 500;
  sails.log.verbose('res.negotiate() :: responding with', statusCode);
  return res.send(statusCode, err);
};
"""

CUSTOM_SERVER_ERROR = """module.exports = function serverError (data) {
  return this.res.status(500).json({ message: 'custom' });
};
"""

requires_node = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")


# ─── Projects ───────────────────────────────────────────────────


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def app_dir(tmp_path):
    """A v2-era app with every legacy artifact present."""
    root = tmp_path / "my-app"
    write(root / "api" / "responses" / "serverError.js", LEGACY_SERVER_ERROR)
    write(root / "api" / "responses" / "negotiate.js", LEGACY_NEGOTIATE)
    write(root / "api" / "machines" / "index.js", "module.exports = {};\n")
    write(root / "node_modules" / "sails-hook-machines" / "index.js", "module.exports = {};\n")
    write(root / "node_modules" / "postinstall.js", "// v2 postinstall\n")
    manifest = {
        "name": "my-app",
        "dependencies": {"sails": "~0.11.0", "sails-hook-machines": "~1.0.0"},
    }
    write(root / "package.json", json.dumps(manifest, indent=2) + "\n")
    return root


# ─── Probing ────────────────────────────────────────────────────


class FakeRunner(ScriptRunner):
    """Stands in for node: a file that uses `_` or `sails` without declaring it dies."""

    GLOBALS = ("_", "sails")

    def __init__(self):
        self.calls = []

    async def invoke(self, source, filename, context, args):
        self.calls.append({"filename": filename, "source": source, "context": context, "args": args})
        if "SYNTAX ERROR" in source:
            return Invocation(loaded=False, error_name="SyntaxError", error_message="Unexpected identifier")
        for ident in self.GLOBALS:
            used = re.search(r"(?<![\w$.])" + re.escape(ident) + r"\.", source)
            declared = re.search(r"var\s+" + re.escape(ident) + r"\s*=", source)
            if used and not declared:
                return Invocation(loaded=True, error_name="ReferenceError", error_message=f"{ident} is not defined")
        return Invocation(loaded=True, error_name="TypeError", error_message="res.status is not a function")


@pytest.fixture
def runner():
    return FakeRunner()


# ─── Credentials / config ───────────────────────────────────────


@pytest.fixture
def keychain_file(tmp_path):
    path = tmp_path / ".treeline.secret.json"
    path.write_text(json.dumps({"username": "mikermcneil", "secret": "s3cret"}))
    return path


@pytest.fixture
def config(keychain_file):
    cfg = CliConfig()
    cfg.api.base_url = "https://api.treeline.test"
    cfg.keychain.path = str(keychain_file)
    return cfg


# ─── Remote API ─────────────────────────────────────────────────

PACKS = [
    {"id": "p-1", "displayName": "Foo"},
    {"id": "p-2", "displayName": "Bar Baz"},
]

EXPORT_SET = [
    {
        "_id": "p-1",
        "isMain": True,
        "name": "machinepack-foo",
        "friendlyName": "Foo",
        "version": "1.2.0",
        "description": "Foo things.",
        "machines": [
            {
                "identity": "do-stuff",
                "friendlyName": "Do stuff",
                "description": "Does stuff.",
                "inputs": {"name": {"example": "bob"}},
                "exits": {"success": {"example": "hi bob"}},
                "fn": "return exits.success('hi ' + inputs.name);",
            }
        ],
    },
    {"_id": "d-1", "isMain": False, "name": "machinepack-strings", "friendlyName": "Strings", "version": "2.0.1", "machines": []},
    {"_id": "d-2", "isMain": False, "name": "machinepack-math", "friendlyName": "Math", "version": "0.4.0", "machines": []},
]


class FakeTreeline:
    """Route table for httpx.MockTransport; records every request path."""

    def __init__(self, packs=None, export_set=None, projects=None, status=None):
        self.packs = PACKS if packs is None else packs
        self.export_set = EXPORT_SET if export_set is None else export_set
        self.projects = projects or {}
        self.status = status
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status:
            return httpx.Response(self.status, json={"error": "nope"})
        path = request.url.path
        if path == "/api/v1/machinepacks":
            return httpx.Response(200, json=self.packs)
        if path.endswith("/export"):
            return httpx.Response(200, json=self.export_set)
        for kind in ("apps", "machinepacks"):
            prefix = f"/api/v1/{kind}/"
            if path.startswith(prefix) and path[len(prefix):] in self.projects:
                return httpx.Response(200, json=self.projects[path[len(prefix):]])
        return httpx.Response(404, json={"error": "not found"})

    def paths(self):
        return [r.url.path for r in self.requests]

    def api(self, secret="s3cret"):
        return TreelineAPI("https://api.treeline.test", secret=secret, transport=httpx.MockTransport(self.handler))


@pytest.fixture
def treeline():
    return FakeTreeline()
