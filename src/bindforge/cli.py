"""Command-line entry point.

Usage:
    bindforge build Acme.Widget --root path/to/binding
    bindforge build Acme.Widget --cflags="-O2 -g" -L /opt/acme/lib -l acme
    bindforge docs Acme.Widget
    bindforge copy-includes Acme.Widget
    bindforge clean Acme.Widget
"""

from __future__ import annotations

import argparse
import shlex
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import DEFAULT_AUTOGEN_HEADER, BuildConfig
from .errors import BindforgeError, MissingInputError
from .inprocess import InProcessToolchain, ModuleBindings
from .module import ModuleBuild
from .platforms import PLATFORMS
from .toolchain import CcToolchain


def _flags(values: list[str]) -> tuple[str, ...]:
    return tuple(flag for value in values for flag in shlex.split(value))


def _read_text(path: str | None, default: str) -> str:
    if path is None:
        return default
    source = Path(path)
    if not source.is_file():
        raise MissingInputError(
            "Autogen banner file not found.",
            context={"path": str(source)},
        )
    return source.read_text(encoding="utf-8")


def module_from_args(args: argparse.Namespace) -> ModuleBuild:
    config = BuildConfig(
        module_name=args.module,
        version=args.module_version,
        source_dirs=tuple(Path(path) for path in args.source),
        include_dirs=tuple(Path(path) for path in args.include),
        autogen_header=_read_text(args.header_file, DEFAULT_AUTOGEN_HEADER),
        autogen_footer=_read_text(args.footer_file, ""),
        extra_compiler_flags=_flags(args.cflags),
        extra_linker_flags=_flags(args.ldflags),
        library_dirs=tuple(Path(path) for path in args.library_dirs),
        libraries=tuple(args.libraries),
        platform=args.platform,
        max_workers=args.jobs,
        generators=(ModuleBindings(),),
    )
    toolchain = InProcessToolchain() if args.toolchain == "inprocess" else CcToolchain()
    return ModuleBuild(root=Path(args.root), config=config, toolchain=toolchain)


def cmd_build(args: argparse.Namespace) -> None:
    module = module_from_args(args)
    try:
        report = module.build()
    finally:
        if args.log:
            module.logger.to_json_lines(args.log)
    if args.report:
        report.to_json(args.report)
    executed = ", ".join(report.executed) or "nothing to do"
    print(f"Built {module.catalog().library} ({executed})")


def cmd_docs(args: argparse.Namespace) -> None:
    for path in module_from_args(args).docs():
        print(path)


def cmd_copy_includes(args: argparse.Namespace) -> None:
    copied = module_from_args(args).copy_includes()
    print(f"Copied {len(copied)} include file(s)")


def cmd_clean(args: argparse.Namespace) -> None:
    for path in module_from_args(args).clean():
        print(f"Removed {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bindforge",
        description="Incremental IDL-to-extension module builder",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    commands = {
        "build": ("Run the build pipeline", cmd_build),
        "docs": ("Build and write host documentation", cmd_docs),
        "copy-includes": ("Install IDL files for dependent modules", cmd_copy_includes),
        "clean": ("Remove build outputs", cmd_clean),
    }
    for name, (help_text, handler) in commands.items():
        cmd = sub.add_parser(name, help=help_text)
        cmd.set_defaults(handler=handler)
        cmd.add_argument("module", help="Dotted module name, e.g. Acme.Widget")
        cmd.add_argument("--root", default=".", help="Binding directory (default: .)")
        cmd.add_argument("--module-version", default="0.1.0", help="Version baked into the glue")
        cmd.add_argument("--source", action="append", default=[], help="IDL source dir")
        cmd.add_argument("--include", action="append", default=[], help="IDL include dir")
        cmd.add_argument("--platform", choices=sorted(PLATFORMS), default=None)
        cmd.add_argument("--jobs", "-j", type=int, default=1, help="Parallel compile jobs")
        cmd.add_argument(
            "--cflags",
            action="append",
            default=[],
            help="Extra compiler flags, shell-quoted (repeatable)",
        )
        cmd.add_argument(
            "--ldflags",
            action="append",
            default=[],
            help="Extra linker flags, shell-quoted (repeatable)",
        )
        cmd.add_argument(
            "-L",
            "--library-dir",
            dest="library_dirs",
            action="append",
            default=[],
            help="Library search directory",
        )
        cmd.add_argument(
            "-l",
            "--library",
            dest="libraries",
            action="append",
            default=[],
            help="Library to link against",
        )
        cmd.add_argument("--header-file", help="File holding the autogen header banner")
        cmd.add_argument("--footer-file", help="File holding the autogen footer")
        cmd.add_argument(
            "--toolchain",
            choices=("cc", "inprocess"),
            default="cc",
            help="Compile with the system cc or write placeholder artifacts",
        )
        if name == "build":
            cmd.add_argument("--report", help="Write a JSON build report to this path")
            cmd.add_argument("--log", help="Write structured log records as JSON lines")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        args.handler(args)
    except BindforgeError as exc:
        print(f"error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
