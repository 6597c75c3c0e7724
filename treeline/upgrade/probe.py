"""Staleness probes for generated files.

Generated response files carry no version marker. A v2 template is recognised
by running it against a synthetic `{req: {}, res: {}}` context and checking
whether it dies on a global that v3 no longer provides (`_` for lodash in
serverError.js, `sails` in negotiate.js).

Rules:
- file missing / fails to load / node unavailable → INDETERMINATE (leave it alone)
- invocation throws the legacy symptom           → NEEDS_PATCH
- invocation succeeds or throws anything else    → CURRENT
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class Classification(str, Enum):
    CURRENT = "current"
    NEEDS_PATCH = "needs-patch"
    INDETERMINATE = "indeterminate"


class FileCache:
    """Per-run cache of file contents. The patcher invalidates what it overwrites."""

    def __init__(self):
        self._entries: dict[Path, str] = {}

    def read(self, path: Path) -> Optional[str]:
        key = Path(path).resolve()
        if key not in self._entries:
            try:
                self._entries[key] = key.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                return None
        return self._entries[key]

    def invalidate(self, path: Path) -> None:
        self._entries.pop(Path(path).resolve(), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: Path) -> bool:
        return Path(path).resolve() in self._entries


@dataclass
class Invocation:
    """What happened when a module was loaded and its export applied."""

    loaded: bool
    ok: bool = False
    error_name: str = ""
    error_message: str = ""


class ScriptRunner(ABC):
    @abstractmethod
    async def invoke(self, source: str, filename: Path, context: dict, args: list) -> Invocation:
        ...


# Compiles the source handed over on stdin as a CommonJS module (so nothing is
# read through require's cache), then applies its export.
_HARNESS = r"""
const Module = require('module');
const path = require('path');
let raw = '';
process.stdin.setEncoding('utf8');
process.stdin.on('data', (chunk) => { raw += chunk; });
process.stdin.on('end', () => {
  const req = JSON.parse(raw);
  const report = (o) => process.stdout.write(JSON.stringify(o), () => process.exit(0));
  let exported;
  try {
    const m = new Module(req.filename, null);
    m.filename = req.filename;
    m.paths = Module._nodeModulePaths(path.dirname(req.filename));
    m._compile(req.source, req.filename);
    exported = m.exports;
  } catch (e) {
    return report({phase: 'load', name: e && e.name, message: String(e && e.message)});
  }
  if (typeof exported !== 'function') {
    return report({phase: 'load', name: 'TypeError', message: 'module does not export a function'});
  }
  try {
    exported.apply(req.context, req.args);
  } catch (e) {
    return report({phase: 'invoke', name: e && e.name, message: String(e && e.message)});
  }
  report({phase: 'invoke', ok: true});
});
"""


class NodeScriptRunner(ScriptRunner):
    """Runs the probe harness in a `node` subprocess."""

    def __init__(self, node_binary: str = "node"):
        self.node_binary = node_binary

    async def invoke(self, source: str, filename: Path, context: dict, args: list) -> Invocation:
        payload = json.dumps({"source": source, "filename": str(filename), "context": context, "args": args})
        try:
            proc = await asyncio.create_subprocess_exec(
                self.node_binary, "-e", _HARNESS,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(Path(filename).parent),
            )
        except OSError as exc:
            logger.warning("Cannot start %s to probe %s: %s", self.node_binary, filename, exc)
            return Invocation(loaded=False, error_message=str(exc))

        stdout, stderr = await proc.communicate(payload.encode())
        try:
            result = json.loads(stdout.decode() or "{}")
        except ValueError:
            result = {}
        if not result:
            logger.debug("Probe harness gave no verdict for %s: %s", filename, stderr.decode()[:200])
            return Invocation(loaded=False, error_message=stderr.decode().strip())
        if result.get("phase") == "load":
            return Invocation(loaded=False, error_name=result.get("name") or "", error_message=result.get("message") or "")
        return Invocation(
            loaded=True,
            ok=bool(result.get("ok")),
            error_name=result.get("name") or "",
            error_message=result.get("message") or "",
        )


class StalenessDetector(ABC):
    """Decides whether a generated file predates the v3 generator."""

    @abstractmethod
    async def classify(self, root: Path, cache: FileCache) -> Classification:
        ...


def undefined_global(identifier: str) -> re.Pattern:
    """Match the ReferenceError message for a missing global, and only that identifier."""
    return re.compile(r"(?<![\w$])" + re.escape(identifier) + r" is not defined")


@dataclass
class ExecutionProbe(StalenessDetector):
    relpath: str
    symptom: re.Pattern
    args: list = field(default_factory=list)
    context: dict = field(default_factory=lambda: {"req": {}, "res": {}})
    runner: Optional[ScriptRunner] = None

    async def classify(self, root: Path, cache: FileCache) -> Classification:
        path = Path(root) / self.relpath
        source = cache.read(path)
        if source is None:
            return Classification.INDETERMINATE

        runner = self.runner or NodeScriptRunner()
        outcome = await runner.invoke(source, path.resolve(), self.context, self.args)
        if not outcome.loaded:
            logger.debug("%s could not be loaded (%s); leaving it alone", self.relpath, outcome.error_message)
            return Classification.INDETERMINATE
        if not outcome.ok and self.symptom.search(outcome.error_message):
            return Classification.NEEDS_PATCH
        return Classification.CURRENT

    def with_runner(self, runner: Optional[ScriptRunner]) -> "ExecutionProbe":
        return ExecutionProbe(self.relpath, self.symptom, list(self.args), dict(self.context), runner)


@dataclass(frozen=True)
class PatchTarget:
    """A generated file, how to detect its legacy form, and its replacement template."""

    name: str
    relpath: str
    detector: Any
    template: str


SERVER_ERROR = PatchTarget(
    name="fixServerErrorJs",
    relpath="api/responses/serverError.js",
    detector=ExecutionProbe("api/responses/serverError.js", undefined_global("_"), args=[{}]),
    template="api/responses/serverError.js",
)

NEGOTIATE = PatchTarget(
    name="fixNegotiateJs",
    relpath="api/responses/negotiate.js",
    detector=ExecutionProbe(
        "api/responses/negotiate.js",
        undefined_global("sails"),
        args=[{"status": 400, "code": "E_MACHINE_RUNTIME_VALIDATION"}],
    ),
    template="api/responses/negotiate.js",
)

PATCH_TARGETS = (SERVER_ERROR, NEGOTIATE)
