"""stickychain.cli

Command line interface entry point for stickychain.

Design constraints:
- argparse-based.
- Lazy imports: do not import fastapi/uvicorn at parse time.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

EPILOG = "Every mutation lands twice. The chain remembers the second."


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stickychain",
        description="Kanban boards and a freelance marketplace on a tamper-evident journal.",
        epilog=EPILOG,
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_demo = sub.add_parser("demo", help="Run a scripted kanban + marketplace session")
    p_demo.add_argument("--export", type=Path, default=None, help="Write the resulting chain as JSON.")

    p_verify = sub.add_parser("verify", help="Validate an exported chain")
    p_verify.add_argument("path", type=Path)

    p_stats = sub.add_parser("stats", help="Print statistics for an exported chain")
    p_stats.add_argument("path", type=Path)

    p_api = sub.add_parser("api", help="Start FastAPI server")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    return parser


def _print_version() -> None:
    from stickychain import __version__

    print(f"stickychain v{__version__}")


def _load_config(ctx: CliContext):
    from stickychain.core.config import Config
    from stickychain.core.logging import configure_logging

    config = Config.load(ctx.repo_root)
    configure_logging(config.logging)
    return config


def _load_chain(path: Path, *, verify_genesis: bool = False):
    from stickychain.core.chain import Chain

    return Chain.from_json(path.read_text(encoding="utf-8"), verify_genesis=verify_genesis)


def _cmd_demo(ctx: CliContext, args: argparse.Namespace) -> int:
    from stickychain.app import Application
    from stickychain.demo import run_demo

    app = Application.create(_load_config(ctx))
    result = run_demo(app)

    print(f"board: {result.board.name} ({len(result.cards)} cards)")
    print(f"project: {result.project.title} -> {result.project.status}")
    print(json.dumps(app.chain.stats().to_dict(), indent=2, sort_keys=True))
    print(json.dumps(app.chain.validate().to_dict(), sort_keys=True))

    if args.export is not None:
        args.export.parent.mkdir(parents=True, exist_ok=True)
        args.export.write_text(app.chain.to_json(indent=2), encoding="utf-8")
        print(f"exported {len(app.chain)} records to {args.export}")
    return 0


def _cmd_verify(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load_config(ctx)
    try:
        chain = _load_chain(args.path, verify_genesis=config.chain.verify_genesis)
    except (OSError, ValueError) as e:
        print(f"cannot load chain: {e}", file=sys.stderr)
        return 2

    result = chain.validate()
    print(json.dumps(result.to_dict(), sort_keys=True))
    return 0 if result.valid else 1


def _cmd_stats(ctx: CliContext, args: argparse.Namespace) -> int:
    _load_config(ctx)
    try:
        chain = _load_chain(args.path)
    except (OSError, ValueError) as e:
        print(f"cannot load chain: {e}", file=sys.stderr)
        return 2

    print(json.dumps(chain.stats().to_dict(), indent=2, sort_keys=True))
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load_config(ctx)

    host = args.host or config.api.host
    port = args.port or config.api.port

    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=False)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "demo": _cmd_demo,
        "verify": _cmd_verify,
        "stats": _cmd_stats,
        "api": _cmd_api,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    return int(fn(ctx, args))


if __name__ == "__main__":
    raise SystemExit(main())
