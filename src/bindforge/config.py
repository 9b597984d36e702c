"""Build configuration and include-path resolution."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from bindforge.bindings import BindingGenerator
from bindforge.errors import ValidationError

INCLUDE_ENV_VAR = "BINDFORGE_INCLUDE"
INSTALLED_INCLUDE_SUBDIR = Path("bindforge") / "_include"

DEFAULT_AUTOGEN_HEADER = """\
/***********************************************

 !!!! DO NOT EDIT !!!!

 This file was auto-generated by bindforge.

 ***********************************************/

"""

_MODULE_PART = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True, slots=True)
class BuildConfig:
    module_name: str
    version: str = "0.1.0"
    source_dirs: tuple[Path, ...] = ()
    include_dirs: tuple[Path, ...] = ()
    search_path: tuple[Path, ...] = ()
    autogen_header: str = DEFAULT_AUTOGEN_HEADER
    autogen_footer: str = ""
    extra_compiler_flags: tuple[str, ...] = ()
    extra_linker_flags: tuple[str, ...] = ()
    library_dirs: tuple[Path, ...] = ()
    libraries: tuple[str, ...] = ()
    host_compiler_flags: tuple[str, ...] = ()
    link_flags: Mapping[str, str | bool | tuple[str, ...]] = field(default_factory=dict)
    platform: str | None = None
    threaded: bool = False
    max_workers: int = field(default_factory=lambda: min(32, os.cpu_count() or 4))
    generators: tuple[BindingGenerator, ...] = ()

    def __post_init__(self) -> None:
        parts = self.module_name.split(".")
        if not self.module_name or not all(_MODULE_PART.match(part) for part in parts):
            raise ValidationError(
                "module_name must be a dotted identifier.",
                hint="Use a name like 'Acme.Widget'.",
                context={"module_name": self.module_name},
            )
        if self.max_workers < 1:
            raise ValidationError(
                "max_workers must be at least 1.",
                context={"max_workers": str(self.max_workers)},
            )
        names = [generator.name for generator in self.generators]
        if len(names) != len(set(names)):
            raise ValidationError(
                "Binding generator names must be unique.",
                context={"generators": ",".join(names)},
            )

    @property
    def module_parts(self) -> tuple[str, ...]:
        return tuple(self.module_name.split("."))


def base_path(root: Path) -> tuple[str, ...]:
    """Path components leading from ``root`` to the directory holding ``core``.

    Development checkouts keep ``core`` one level up from the binding
    directory; distribution trees copy it in place.
    """
    if (root / "core").exists():
        return ()
    return ("..",)


def default_source_dirs(root: Path) -> tuple[Path, ...]:
    return (root.joinpath(*base_path(root), "core"),)


def idl_include_dirs(
    config: BuildConfig,
    *,
    environ: Mapping[str, str] | None = None,
) -> tuple[Path, ...]:
    """Explicit include dirs, then ``BINDFORGE_INCLUDE``, then installed includes."""
    env = os.environ if environ is None else environ
    dirs: list[Path] = list(config.include_dirs)
    raw = env.get(INCLUDE_ENV_VAR, "")
    if raw:
        dirs.extend(Path(entry) for entry in raw.split(":") if entry)
    for entry in config.search_path:
        candidate = entry / INSTALLED_INCLUDE_SUBDIR
        if candidate.is_dir():
            dirs.append(candidate)
    return tuple(dirs)


def linker_flags(config: BuildConfig, platform_id: str) -> tuple[str, ...]:
    flags = list(config.extra_linker_flags)
    # pthreads live in a separate library on threaded OpenBSD builds
    if platform_id == "openbsd" and config.threaded and "-lpthread" not in flags:
        flags.append("-lpthread")
    return tuple(flags)
