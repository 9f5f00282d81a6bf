"""
main.py
-------
Command-line entry point for schemagraph.

Usage:
    python main.py ingest DIR                       Merge model files under DIR
    python main.py convert FILE --source S --target T
    python main.py diff BEFORE AFTER                Compare two schema snapshots
    python main.py validate FILE                    Check a schema file
    python main.py serve                            Run the HTTP API

Pass -v before the command for DEBUG logging.

Schema files are JSON (canonical ``entities`` / ``relationships`` or the
graph-editor ``nodes`` / ``edges`` form). Results are printed to stdout as
JSON; log lines go to stderr.

Exit codes: 0 success, 1 invalid schema, 2 bad request or unreadable input.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from config import CONFIG
from core.converter import convert
from core.differ import diff
from core.errors import CollaboratorFailure, InvalidRequest, ValidationError
from core.ingestion import ingest, is_model_file
from core.validator import find_issues
from logger import get_logger, set_level
from models.schema import CanonicalModel, SchemaFormatError

log = get_logger(__name__)

_SKIPPED_DIRS = frozenset({"node_modules", ".git", "dist", "build", "__pycache__", ".venv"})


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidRequest(f"Cannot read schema file '{path}': {exc}") from exc


def collect_model_files(root: Path) -> list[tuple[str, str]]:
    """Read every model-looking file under *root* as ``(relative path, text)``."""
    files: list[tuple[str, str]] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or _SKIPPED_DIRS.intersection(path.relative_to(root).parts):
            continue
        relative = path.relative_to(root).as_posix()
        if not is_model_file(relative):
            continue
        try:
            files.append((relative, path.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Skipping unreadable file '%s': %s", relative, exc)
    return files


def _cmd_ingest(args: argparse.Namespace) -> int:
    root = Path(args.directory)
    if not root.is_dir():
        raise InvalidRequest(f"'{root}' is not a directory")
    result = ingest(collect_model_files(root))
    _emit(result.to_dict())
    return 0


def _cmd_convert(args: argparse.Namespace) -> int:
    result = convert(_read_json(args.file), args.source, args.target)
    _emit(result.to_dict())
    return 0


def _cmd_diff(args: argparse.Namespace) -> int:
    changes = diff(_read_json(args.before), _read_json(args.after))
    _emit({**changes.to_dict(), "summary": changes.summary()})
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    try:
        model = CanonicalModel.from_dict(_read_json(args.file))
    except SchemaFormatError as exc:
        raise InvalidRequest(str(exc)) from exc
    issues = find_issues(model)
    _emit({"valid": not issues, "issues": [i.to_dict() for i in issues]})
    return 1 if issues else 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from services.api.main import app

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemagraph",
        description="Ingest, convert and diff database schema graphs.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    commands = parser.add_subparsers(dest="command", required=True)

    ingest_cmd = commands.add_parser("ingest", help="merge model files under a directory")
    ingest_cmd.add_argument("directory")
    ingest_cmd.set_defaults(handler=_cmd_ingest)

    convert_cmd = commands.add_parser("convert", help="render a schema for another dialect")
    convert_cmd.add_argument("file")
    convert_cmd.add_argument("--source", required=True, help="source dialect, e.g. postgres")
    convert_cmd.add_argument("--target", required=True, help="target dialect, e.g. mysql")
    convert_cmd.set_defaults(handler=_cmd_convert)

    diff_cmd = commands.add_parser("diff", help="compare two schema snapshots")
    diff_cmd.add_argument("before")
    diff_cmd.add_argument("after")
    diff_cmd.set_defaults(handler=_cmd_diff)

    validate_cmd = commands.add_parser("validate", help="check a schema file")
    validate_cmd.add_argument("file")
    validate_cmd.set_defaults(handler=_cmd_validate)

    serve_cmd = commands.add_parser("serve", help="run the HTTP API")
    serve_cmd.add_argument("--host", default=CONFIG.api.host)
    serve_cmd.add_argument("--port", type=int, default=CONFIG.api.port)
    serve_cmd.set_defaults(handler=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)
    try:
        return args.handler(args)
    except ValidationError as exc:
        log.error("Invalid schema: %s", exc)
        _emit({"error": str(exc), "issues": [i.to_dict() for i in exc.issues]})
        return 1
    except (InvalidRequest, CollaboratorFailure) as exc:
        log.error("%s", exc)
        _emit({"error": str(exc)})
        return 2


if __name__ == "__main__":
    sys.exit(main())
