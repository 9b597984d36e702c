"""Build façade for one extension module."""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .catalog import ArtifactCatalog
from .config import BuildConfig
from .errors import MissingInputError
from .freshness import copy_if_modified
from .inprocess import (
    InProcessCoreEmitter,
    InProcessGlueTranspiler,
    InProcessHierarchyCompiler,
    InProcessHostBindingFactory,
)
from .interfaces import CoreEmitter, GlueTranspiler, HostBindingFactory
from .models import BuildReport
from .observability import StructuredLogger
from .pipeline import BuildContext, CleanupLog, CompilerFactory, StageRunner, default_runner
from .platforms import detect_platform, get_link_adapter, linker_flags_for_modules, platform_info
from .toolchain import CcToolchain, Toolchain


@dataclass(slots=True)
class ModuleBuild:
    """Drives the pipeline and the supplementary actions for ``root``.

    Collaborators default to the in-process IDL compiler and emitters plus
    the system ``cc``. Each action creates a fresh catalog, so files added
    between calls are picked up.
    """

    root: Path
    config: BuildConfig
    compiler_factory: CompilerFactory = InProcessHierarchyCompiler
    core_emitter_factory: Callable[[Path], CoreEmitter] = InProcessCoreEmitter
    host_bindings: HostBindingFactory = field(default_factory=InProcessHostBindingFactory)
    transpiler: GlueTranspiler = field(default_factory=InProcessGlueTranspiler)
    toolchain: Toolchain = field(default_factory=CcToolchain)
    runner: StageRunner = field(default_factory=default_runner)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    environ: Mapping[str, str] | None = None
    cleanup: CleanupLog = field(default_factory=CleanupLog)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    @property
    def platform_id(self) -> str:
        return self.config.platform or detect_platform()

    def catalog(self) -> ArtifactCatalog:
        return ArtifactCatalog(
            root=self.root,
            config=self.config,
            platform=platform_info(self.platform_id),
            environ=self.environ,
        )

    def context(self) -> BuildContext:
        catalog = self.catalog()
        return BuildContext(
            catalog=catalog,
            config=self.config,
            compiler_factory=self.compiler_factory,
            core_emitter=self.core_emitter_factory(catalog.autogen_dir),
            host_bindings=self.host_bindings,
            transpiler=self.transpiler,
            toolchain=self.toolchain,
            link_adapter=get_link_adapter(self.platform_id),
            logger=self.logger,
            cleanup=self.cleanup,
        )

    def build(self) -> BuildReport:
        context = self.context()
        self.logger.log(
            operation="build",
            stage=None,
            artifact=context.catalog.library,
            message="Starting build.",
            extra={"module": self.config.module_name, "platform": self.platform_id},
        )
        report = self.runner.run(context)
        self.logger.log(
            operation="build",
            stage=None,
            artifact=context.catalog.library,
            message="Build complete.",
            extra={"executed": list(report.executed), "compiled": len(report.compiled)},
        )
        return report

    def docs(self) -> list[Path]:
        """Build, then write host-language documentation for every bound class."""
        self.build()
        context = self.context()
        written = context.host_binding().write_docs()
        for path in written:
            self.cleanup.add(path)
        self.logger.log(
            operation="docs",
            stage=None,
            artifact=None,
            message="Wrote documentation.",
            extra={"files": len(written)},
        )
        return written

    def copy_includes(self) -> list[Path]:
        """Install IDL and parcel files into the distributable include dir."""
        catalog = self.catalog()
        copied: list[Path] = []
        for source_dir, source in catalog.installable_headers():
            dest = catalog.include_install_dir / source.relative_to(source_dir)
            if copy_if_modified(source, dest):
                copied.append(dest)
        self.cleanup.add(catalog.include_install_dir)
        if copied:
            self.logger.log(
                operation="copy_includes",
                stage=None,
                artifact=catalog.include_install_dir,
                message="Installed include files.",
                extra={"files": len(copied)},
            )
        return copied

    def copy_include_file(self, *parts: str) -> Path:
        """Copy the first include-dir file matching ``parts`` into the install dir."""
        catalog = self.catalog()
        dest = catalog.include_install_dir.joinpath(*parts)
        for include_dir in catalog.compiler_include_dirs:
            source = include_dir.joinpath(*parts)
            if source.is_file():
                copy_if_modified(source, dest)
                self.cleanup.add(dest)
                return dest
        raise MissingInputError(
            "Include file not found in any include directory.",
            hint="Add the directory holding it to include_dirs.",
            context={"path": str(Path(*parts))},
        )

    def linker_flags_for(self, module_names: Iterable[str]) -> tuple[str, ...]:
        return linker_flags_for_modules(
            module_names,
            search_paths=self.config.search_path,
            platform_id=self.platform_id,
        )

    def clean(self) -> list[Path]:
        """Remove everything a build may have produced."""
        catalog = self.catalog()
        removed: list[Path] = []
        for path in (*catalog.cleanup_candidates(), *self.cleanup.entries()):
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()
            else:
                continue
            removed.append(path)
        self.logger.log(
            operation="clean",
            stage=None,
            artifact=None,
            message="Removed build outputs.",
            extra={"removed": len(removed)},
        )
        return removed
