"""Native C toolchain driven through ``cc`` subprocesses."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from bindforge.errors import CompileError, LinkError
from bindforge.models import CompileUnit
from bindforge.platforms.base import LinkAdapter, LinkSpec

STDERR_LIMIT = 2000


@dataclass(slots=True)
class CcToolchain:
    name: str = "cc"
    compiler: str = "cc"

    def compile_command(self, unit: CompileUnit, include_dirs: tuple[Path, ...]) -> list[str]:
        return [
            self.compiler,
            "-c",
            str(unit.source),
            "-o",
            str(unit.object_path),
            *(f"-I{path}" for path in include_dirs),
            *(f"-D{key}={value}" for key, value in unit.defines),
            *unit.flags,
        ]

    def compile(self, unit: CompileUnit, include_dirs: tuple[Path, ...]) -> Path:
        if shutil.which(self.compiler) is None:
            raise CompileError(
                f"C compiler `{self.compiler}` not found in PATH.",
                hint="Install a C toolchain or configure CcToolchain(compiler=...).",
                context={"toolchain": self.name, "source": str(unit.source)},
            )
        unit.object_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.compile_command(unit, include_dirs)
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            raise CompileError(
                "Compilation failed.",
                hint="Check compiler output for details.",
                context={
                    "toolchain": self.name,
                    "source": str(unit.source),
                    "returncode": str(result.returncode),
                    "stderr": result.stderr[:STDERR_LIMIT] if result.stderr else "",
                    "command": " ".join(cmd),
                },
            )
        return unit.object_path

    def link(self, spec: LinkSpec, adapter: LinkAdapter) -> Path:
        spec.output.parent.mkdir(parents=True, exist_ok=True)
        for invocation in adapter.build_link_commands(spec):
            result = subprocess.run(
                list(invocation.argv),
                cwd=None if invocation.cwd is None else str(invocation.cwd),
                capture_output=True,
                text=True,
                check=False,
            )
            if result.returncode != 0:
                raise LinkError(
                    "Linking failed.",
                    hint="Check linker output for details.",
                    context={
                        "toolchain": self.name,
                        "adapter": adapter.name,
                        "output": str(spec.output),
                        "returncode": str(result.returncode),
                        "stderr": result.stderr[:STDERR_LIMIT] if result.stderr else "",
                        "command": invocation.render(),
                    },
                )
        if not spec.output.exists():
            raise LinkError(
                "Linker finished without producing the library.",
                context={"adapter": adapter.name, "output": str(spec.output)},
            )
        return spec.output
