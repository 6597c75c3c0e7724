#!/usr/bin/env python3
"""treeline — Treeline CLI.

Usage:
    treeline export
    treeline export --destination ~/code/foo --force
    treeline upgrade --dir ./my-app --type app
    treeline --json upgrade
"""

import argparse
import asyncio
import logging
import os
import sys

from treeline import __version__
from treeline.config import load_config
from treeline.errors import AlreadyExists, NotAuthenticated, TreelineError
from treeline.export import export_pack
from treeline.models import PROJECT_TYPES, ProjectRef
from treeline.upgrade import NodeScriptRunner, run_upgrade

from . import _output as out
from ._prompt import select

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_NOT_LOGGED_IN = 3
EXIT_ALREADY_EXISTS = 4


def load_settings(args):
    """Config file + env, then per-invocation flags."""
    cfg = load_config()
    if getattr(args, "url", None):
        cfg.api.base_url = args.url
    if getattr(args, "keychain", None):
        cfg.keychain.path = args.keychain
    return cfg


# ── Command handlers ──


def cmd_export(args):
    cfg = load_settings(args)
    try:
        result = asyncio.run(
            export_pack(
                config=cfg,
                select=select,
                identity=args.identity,
                destination=args.destination,
                force=args.force,
            )
        )
    except NotAuthenticated:
        print(f"This computer is {out.yellow('not logged in')} to Treeline.")
        return EXIT_NOT_LOGGED_IN
    except AlreadyExists as e:
        print(
            "A file or folder with the same name as this machinepack already exists "
            f"at the destination path ({e.path})."
        )
        return EXIT_ALREADY_EXISTS
    except TreelineError as e:
        out.error(str(e))
        return EXIT_ERROR

    if getattr(args, "json_output", False):
        out.out_json(
            {
                "id": result.pack.id,
                "name": result.pack.display_name,
                "destination": str(result.destination),
                "dependencies": [str(p) for p in result.dependencies],
            }
        )
    else:
        print(f"Exported {out.cyan(result.pack.display_name)} machinepack from Treeline to a local folder.")
        print(out.kv({"destination": result.destination, "dependencies": len(result.dependencies)}))
    return EXIT_SUCCESS


def cmd_upgrade(args):
    cfg = load_settings(args)
    project = ProjectRef(root=args.dir or os.getcwd(), type=args.type or cfg.upgrade.project_type)
    report = asyncio.run(
        run_upgrade(
            project,
            api_base_url=cfg.api.base_url,
            keychain_path=cfg.keychain.path,
            runner=NodeScriptRunner(cfg.upgrade.node_binary),
        )
    )
    if getattr(args, "json_output", False):
        out.out_json(report.to_dict())
    else:
        rows = [{"unit": r.name, "status": r.status, "detail": r.detail} for r in report.results]
        print(out.table(rows, ["unit", "status", "detail"]))
        for r in report.failed:
            out.warn(f"{r.name}: {r.detail}")
        out.info(f"Upgrade of {project.root} complete.")
    return EXIT_SUCCESS


# ── Parser ──


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="treeline", description="Treeline CLI")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--url", help="Treeline API base URL (default from config / TREELINE_API_URL)")
    parser.add_argument("--keychain", help="Path to the keychain file (default ~/.treeline.secret.json)")
    parser.add_argument("--json", dest="json_output", action="store_true", help="Output JSON")
    parser.add_argument("--no-color", action="store_true", help="Disable colors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("export", help="Export a machinepack from Treeline into a folder of code on this computer")
    p.add_argument("identity", nargs="?", help="Machinepack identity (slug); prompts when omitted")
    p.add_argument("--destination", "-d", help="Where to export (default ./<name>)")
    p.add_argument("--force", "-f", action="store_true", help="Overwrite files that already exist")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("upgrade", help="Fix a project generated by CLI v2 so it works with v3")
    p.add_argument("--dir", help="Path to the local project (default cwd)")
    p.add_argument("--type", choices=PROJECT_TYPES, help="Project type (default app)")
    p.set_defaults(func=cmd_upgrade)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.no_color:
        out.NO_COLOR = True
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_ERROR
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
