"""In-process glue transpiler and toolchain for testing and development.

Produces deterministic artifacts without invoking a C compiler or linker.
Link commands are still built by the configured adapter and recorded, so
adapter behaviour is exercised end to end.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, field
from pathlib import Path

from bindforge.errors import CompileError, GenerationError, LinkError
from bindforge.inprocess.emit import write_if_modified
from bindforge.models import CompileUnit, Invocation
from bindforge.platforms.base import LinkAdapter, LinkSpec


@dataclass(frozen=True, slots=True)
class InProcessGlueTranspiler:
    def transpile(self, glue_path: Path, output_path: Path) -> Path:
        try:
            lines = glue_path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError as exc:
            raise GenerationError(
                "Glue file is missing.",
                hint="Run the host binding generation first.",
                context={"path": str(glue_path)},
            ) from exc

        boot = ""
        body: list[str] = []
        for line in lines:
            if line.startswith("BOOT = "):
                boot = line.removeprefix("BOOT = ").strip()
            elif line.startswith(("MODULE = ", "CLASS ", "  METHOD ")):
                body.append(f"/* {line.strip()} */")
            elif line.strip():
                raise GenerationError(
                    "Unrecognized glue directive.",
                    context={"path": str(glue_path), "text": line},
                )
        if not boot:
            raise GenerationError(
                "Glue file declares no BOOT function.",
                context={"path": str(glue_path)},
            )

        source = [
            f"/* Generated from {glue_path.name}. */",
            '#include "boot.h"',
            "",
            *body,
            "",
            "void",
            f"boot_{output_path.stem}(void) {{",
            f"    {boot}();",
            "}",
            "",
        ]
        write_if_modified(output_path, "\n".join(source))
        return output_path


@dataclass(slots=True)
class InProcessToolchain:
    """Writes placeholder objects and libraries.

    ``fail_on`` names source files (by basename) whose compilation fails.
    """

    name: str = "inprocess"
    fail_on: frozenset[str] = frozenset()
    compiled: list[Path] = field(default_factory=list)
    invocations: list[Invocation] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def compile(self, unit: CompileUnit, include_dirs: tuple[Path, ...]) -> Path:
        if unit.source.name in self.fail_on:
            raise CompileError(
                "Compilation failed.",
                hint="Check compiler output for details.",
                context={"toolchain": self.name, "source": str(unit.source)},
            )
        try:
            content = unit.source.read_bytes()
        except FileNotFoundError as exc:
            raise CompileError(
                "Source file is missing.",
                context={"toolchain": self.name, "source": str(unit.source)},
            ) from exc
        digest = hashlib.sha256(content)
        for flag in (*unit.flags, *(f"{key}={value}" for key, value in unit.defines)):
            digest.update(flag.encode("utf-8"))
        unit.object_path.parent.mkdir(parents=True, exist_ok=True)
        unit.object_path.write_text(
            f"object: {unit.source.name}\ndigest={digest.hexdigest()}\n",
            encoding="utf-8",
        )
        with self._lock:
            self.compiled.append(unit.object_path)
        return unit.object_path

    def link(self, spec: LinkSpec, adapter: LinkAdapter) -> Path:
        spec.output.parent.mkdir(parents=True, exist_ok=True)
        commands = adapter.build_link_commands(spec)
        digest = hashlib.sha256()
        for obj in spec.objects:
            if not obj.exists():
                raise LinkError(
                    "Object file is missing.",
                    context={"adapter": adapter.name, "object": str(obj)},
                )
            digest.update(obj.read_bytes())
        for invocation in commands:
            digest.update(invocation.render().encode("utf-8"))
        with self._lock:
            self.invocations.extend(commands)
        spec.output.write_text(
            f"library: {spec.output.name}\ndigest={digest.hexdigest()}\n",
            encoding="utf-8",
        )
        return spec.output
