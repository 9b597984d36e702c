"""Link adapter for GCC on Windows (MinGW), which links through import libraries.

Differences from the single-step POSIX link:

* the host runtime import library (``libhost56.a``) is passed as a bare
  ``-lhost56`` token because GCC won't resolve the decorated file name;
* ``-nostartfiles`` is added when explicit startup objects are given;
* every DLL gets a pseudo-unique image base derived from its file name so
  that independently built modules rarely need relocation at load time;
* with ``use_scripts`` the search paths, startup files, objects and runtime
  libraries move into a GNU ld script written beside the output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import zip_longest
from pathlib import Path

from bindforge.models import Invocation
from bindforge.platforms.base import LinkSpec, PlatformInfo

_DECORATED_LIBRARY = re.compile(r"^(?:lib)?([^.]+).*$")


def linker_token(import_reference: str) -> str:
    """Strip ``lib`` prefix and extension: ``libhost56.a`` -> ``-lhost56``."""
    name = Path(import_reference).name
    match = _DECORATED_LIBRARY.match(name)
    if match is None:
        return import_reference
    return f"-l{match.group(1)}"


def image_base(output: Path) -> str:
    """Derive a load address from the first eight bytes of the basename."""
    name = output.name.encode("utf-8")
    head, tail = name[:4], name[4:8]
    mixed = bytes(a ^ b for a, b in zip_longest(head, tail, fillvalue=0))
    value = int.from_bytes(mixed[:2].ljust(2, b"\0"), "big")
    return f"0x{value:x}0000"


def linker_script_path(output: Path) -> Path:
    return output.parent / f"{output.stem}.lds"


@dataclass(frozen=True, slots=True)
class MingwLinkAdapter:
    platform: PlatformInfo
    name: str = "mingw"

    def build_link_commands(self, spec: LinkSpec) -> tuple[Invocation, ...]:
        search_paths = [str(path) for path in spec.search_paths]
        startup = list(spec.flag_list("startup"))
        objects = [str(obj) for obj in spec.objects]
        other_ldflags = list(spec.flag_list("other_ldflags"))
        runtime_import = spec.flag_value("runtime_import")
        runtime_libs = list(spec.flag_list("runtime_libs"))

        if runtime_import is not None:
            runtime_import = linker_token(runtime_import)
        if startup:
            other_ldflags.insert(0, "-nostartfiles")

        if spec.flag_enabled("use_scripts"):
            script = self._write_linker_script(
                spec.output,
                search_paths=search_paths,
                startup=startup,
                objects=objects,
                runtime=[*([runtime_import] if runtime_import else []), *runtime_libs],
            )
            search_paths, startup, objects, runtime_libs = [], [], [], []
            runtime_import = None
            other_ldflags.append(str(script))

        map_file = spec.flag_value("map_file")
        argv = [
            *spec.linker_argv(),
            "-o",
            str(spec.output),
            f"-Wl,--image-base,{image_base(spec.output)}",
            *spec.flag_list("lddlflags"),
            *(f"-L{path}" for path in search_paths),
            *startup,
            *objects,
            *other_ldflags,
            *(f"-l{library}" for library in spec.libraries),
            runtime_import or "",
            *runtime_libs,
            spec.flag_value("def_file") or "",
            *(("-Map", map_file) if map_file else ()),
        ]
        return (Invocation(argv=tuple(arg for arg in argv if arg)),)

    def _write_linker_script(
        self,
        output: Path,
        *,
        search_paths: list[str],
        startup: list[str],
        objects: list[str],
        runtime: list[str],
    ) -> Path:
        lines = [f"SEARCH_DIR({path})" for path in search_paths]
        inputs = list(objects)
        if startup:
            # ld accepts a single STARTUP file; the rest become plain inputs
            lines.append(f"STARTUP({startup[0]})")
            inputs = [*startup[1:], *inputs]
        lines.append(f"INPUT({','.join(inputs)})")
        lines.append(f"INPUT({' '.join(runtime)})")

        script = linker_script_path(output)
        script.parent.mkdir(parents=True, exist_ok=True)
        content = "\n".join(lines) + "\n"
        if not script.exists() or script.read_text(encoding="utf-8") != content:
            script.write_text(content, encoding="utf-8")
        return script
