"""Typed interface for native compiler/linker toolchains."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from bindforge.models import CompileUnit
from bindforge.platforms.base import LinkAdapter, LinkSpec


class Toolchain(Protocol):
    name: str

    def compile(self, unit: CompileUnit, include_dirs: tuple[Path, ...]) -> Path:
        """Compile ``unit.source`` to ``unit.object_path``; raise CompileError on failure."""

    def link(self, spec: LinkSpec, adapter: LinkAdapter) -> Path:
        """Run the adapter's invocations for ``spec``; raise LinkError on failure."""
