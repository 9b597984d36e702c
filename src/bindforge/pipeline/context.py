"""Explicit per-invocation state threaded through every stage."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from bindforge.bindings import BindingRegistry, collect_bindings
from bindforge.catalog import ArtifactCatalog
from bindforge.config import BuildConfig
from bindforge.hierarchy import HierarchyModel
from bindforge.interfaces import (
    CoreEmitter,
    GlueTranspiler,
    HierarchyCompiler,
    HostBinding,
    HostBindingFactory,
)
from bindforge.observability import StructuredLogger
from bindforge.platforms.base import LinkAdapter
from bindforge.toolchain.base import Toolchain

CompilerFactory = Callable[[Path], HierarchyCompiler]


@dataclass(slots=True)
class CleanupLog:
    """Append-only record of paths a build produced."""

    _entries: list[Path] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, path: Path) -> None:
        with self._lock:
            if path not in self._entries:
                self._entries.append(path)

    def entries(self) -> tuple[Path, ...]:
        with self._lock:
            return tuple(self._entries)


@dataclass(slots=True)
class BuildContext:
    catalog: ArtifactCatalog
    config: BuildConfig
    compiler_factory: CompilerFactory
    core_emitter: CoreEmitter
    host_bindings: HostBindingFactory
    transpiler: GlueTranspiler
    toolchain: Toolchain
    link_adapter: LinkAdapter
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    cleanup: CleanupLog = field(default_factory=CleanupLog)
    core_changed: bool = False
    _model: HierarchyModel | None = field(default=None, repr=False)
    _binding: HostBinding | None = field(default=None, repr=False)
    _compiled: list[Path] = field(default_factory=list, repr=False)
    _compiled_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def model(self) -> HierarchyModel:
        """Return the hierarchy model, parsing the IDL sources on first use."""
        if self._model is None:
            compiler = self.compiler_factory(self.catalog.autogen_dir)
            for source_dir in self.catalog.source_dirs:
                if source_dir.is_dir():
                    compiler.add_source_dir(source_dir)
            for include_dir in self.catalog.idl_include_dirs:
                compiler.add_include_dir(include_dir)
            self._model = compiler.build()
        return self._model

    def invalidate_model(self) -> None:
        self._model = None
        self._binding = None

    def host_binding(self) -> HostBinding:
        if self._binding is None:
            model = self.model()
            registry: BindingRegistry = collect_bindings(model, self.config.generators)
            self._binding = self.host_bindings.create(
                model,
                registry,
                module_name=self.config.module_name,
                autogen_dir=self.catalog.autogen_dir,
                glue_path=self.catalog.glue_path,
                typemap_path=self.catalog.typemap,
                header=self.config.autogen_header,
                footer=self.config.autogen_footer,
            )
        return self._binding

    def record_compiled(self, object_path: Path) -> None:
        with self._compiled_lock:
            self._compiled.append(object_path)

    def compiled(self) -> tuple[Path, ...]:
        with self._compiled_lock:
            return tuple(self._compiled)
