"""Timestamp-based freshness checks between input and output artifact sets.

An output set is STALE when any output is missing or any input is newer
than the oldest output. Directories count as new as their newest member
file (recursively), minus the exclusion patterns of the query and of the
reference itself.
"""

from __future__ import annotations

import os
import shutil
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from bindforge.errors import MissingInputError
from bindforge.models import ArtifactRef


@dataclass(frozen=True, slots=True)
class Gate:
    """A freshness query guarding a stage action."""

    inputs: tuple[ArtifactRef, ...]
    outputs: tuple[ArtifactRef, ...]
    exclude: tuple[str, ...] = ()

    def is_stale(self) -> bool:
        return is_stale(self.inputs, self.outputs, exclude=self.exclude)

    def newest_input(self) -> int | None:
        return newest(self.inputs, exclude=self.exclude)


def effective_mtime(ref: ArtifactRef, *, exclude: tuple[str, ...] = ()) -> int | None:
    """Return the artifact timestamp in nanoseconds, or None when missing."""
    path = ref.path
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    if not path.is_dir():
        return stat.st_mtime_ns

    patterns = (*ref.exclude, *exclude)
    latest = stat.st_mtime_ns
    for root, _dirs, files in os.walk(path):
        for name in files:
            member = Path(root) / name
            if _excluded(member.relative_to(path), patterns):
                continue
            try:
                mtime = member.stat().st_mtime_ns
            except FileNotFoundError:
                continue
            if mtime > latest:
                latest = mtime
    return latest


def newest(refs: Iterable[ArtifactRef], *, exclude: tuple[str, ...] = ()) -> int | None:
    times = [effective_mtime(ref, exclude=exclude) for ref in refs]
    present = [t for t in times if t is not None]
    return max(present) if present else None


def oldest(refs: Iterable[ArtifactRef], *, exclude: tuple[str, ...] = ()) -> int | None:
    times = [effective_mtime(ref, exclude=exclude) for ref in refs]
    if any(t is None for t in times) or not times:
        return None
    return min(t for t in times if t is not None)


def is_stale(
    inputs: Iterable[ArtifactRef],
    outputs: Iterable[ArtifactRef],
    *,
    exclude: tuple[str, ...] = (),
) -> bool:
    input_times: list[int] = []
    for ref in inputs:
        mtime = effective_mtime(ref, exclude=exclude)
        if mtime is None:
            raise MissingInputError(
                "Declared build input does not exist.",
                hint="Restore the file or remove it from the build configuration.",
                context={"path": str(ref.path), "kind": ref.kind},
            )
        input_times.append(mtime)

    output_refs = tuple(outputs)
    if not output_refs:
        return True
    output_times: list[int] = []
    for ref in output_refs:
        mtime = effective_mtime(ref, exclude=exclude)
        if mtime is None:
            return True
        output_times.append(mtime)

    oldest_output = min(output_times)
    return any(mtime > oldest_output for mtime in input_times)


def touch(ref: ArtifactRef, *, not_before: int | None = None) -> int:
    """Advance an artifact's mtime without altering its content.

    The new timestamp is never earlier than ``not_before`` so that a touched
    output compares FRESH against inputs carrying future timestamps.
    """
    stamp = time.time_ns()
    if not_before is not None and not_before > stamp:
        stamp = not_before
    os.utime(ref.path, ns=(stamp, stamp))
    return stamp


def _excluded(relative: Path, patterns: tuple[str, ...]) -> bool:
    return any(relative.match(pattern) for pattern in patterns)


def copy_if_modified(source: Path, dest: Path) -> bool:
    """Copy ``source`` over ``dest`` unless ``dest`` is at least as new."""
    if dest.exists() and not is_stale((ArtifactRef(path=source),), (ArtifactRef(path=dest),)):
        return False
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, dest)
    return True
