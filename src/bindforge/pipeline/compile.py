"""Parallel per-file compilation for the compile-sources stage."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from bindforge.models import CompileUnit
from bindforge.pipeline.context import BuildContext


def compile_units(context: BuildContext, units: tuple[CompileUnit, ...]) -> tuple[Path, ...]:
    """Compile ``units`` on a bounded worker pool.

    The first failure cancels work that has not started and propagates.
    Objects finished before the failure stay on disk, so the next run only
    recompiles what is still stale.
    """
    if not units:
        return ()
    workers = min(context.config.max_workers, len(units))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="compile")
    try:
        futures = {executor.submit(_compile_one, context, unit): unit for unit in units}
        built: dict[CompileUnit, Path] = {}
        for future in as_completed(futures):
            built[futures[future]] = future.result()
    except BaseException:
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return tuple(built[unit] for unit in units)


def _compile_one(context: BuildContext, unit: CompileUnit) -> Path:
    # a failed compile must never leave an object newer than its source
    unit.object_path.unlink(missing_ok=True)
    context.cleanup.add(unit.object_path)
    context.logger.log(
        operation="compile",
        stage="compile-sources",
        artifact=unit.source,
        message="Compiling source.",
        extra={"object": str(unit.object_path)},
    )
    object_path = context.toolchain.compile(unit, context.catalog.compiler_include_dirs)
    context.record_compiled(object_path)
    return object_path
