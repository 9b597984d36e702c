"""Typed interfaces for the collaborators driven by the build pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from bindforge.bindings import BindingRegistry
from bindforge.hierarchy import HierarchyModel


class HierarchyCompiler(Protocol):
    def add_source_dir(self, path: Path) -> None:
        """Add a directory whose IDL files belong to the module."""

    def add_include_dir(self, path: Path) -> None:
        """Add a directory with IDL files of other modules."""

    def build(self) -> HierarchyModel:
        """Parse every IDL file; raise ParseError on malformed input."""


class CoreEmitter(Protocol):
    def write_all_modified(self, model: HierarchyModel, header: str, footer: str) -> bool:
        """Write core headers and sources; return True if any file changed."""


class HostBinding(Protocol):
    def write_callbacks(self) -> None: ...

    def write_boot(self) -> None: ...

    def write_hostdefs(self) -> None: ...

    def write_bindings(self) -> None: ...

    def write_typemap(self) -> None: ...

    def write_docs(self) -> list[Path]:
        """Write host-language documentation and return the written paths."""


class HostBindingFactory(Protocol):
    def create(
        self,
        model: HierarchyModel,
        registry: BindingRegistry,
        *,
        module_name: str,
        autogen_dir: Path,
        glue_path: Path,
        typemap_path: Path,
        header: str,
        footer: str,
    ) -> HostBinding:
        """Return a host binding writer for one build invocation."""


class GlueTranspiler(Protocol):
    def transpile(self, glue_path: Path, output_path: Path) -> Path:
        """Lower a glue file into a compilable C source."""
