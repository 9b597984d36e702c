"""Core typed dataclasses for build artifacts, invocations and run reports."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import cbor2

ArtifactKind = Literal["source", "generated", "object", "library", "stamp-directory"]
StageName = Literal[
    "parse-model",
    "generate-core",
    "generate-host-bindings",
    "transpile-glue",
    "compile-sources",
    "link",
    "bootstrap-stub",
]
StageStatus = Literal["executed", "skipped"]

STAGE_ORDER: tuple[StageName, ...] = (
    "parse-model",
    "generate-core",
    "generate-host-bindings",
    "transpile-glue",
    "compile-sources",
    "link",
    "bootstrap-stub",
)


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """A named on-disk artifact.

    ``exclude`` holds glob patterns (matched against paths relative to a
    stamp directory) whose files never count towards its timestamp.
    """

    path: Path
    kind: ArtifactKind = "source"
    exclude: tuple[str, ...] = ()

    @classmethod
    def stamp(cls, path: Path, *, exclude: tuple[str, ...] = ()) -> ArtifactRef:
        return cls(path=path, kind="stamp-directory", exclude=exclude)


@dataclass(frozen=True, slots=True)
class Invocation:
    argv: tuple[str, ...]
    cwd: Path | None = None

    def render(self) -> str:
        return " ".join(self.argv)


@dataclass(frozen=True, slots=True)
class CompileUnit:
    """One source file and the object it compiles to."""

    source: Path
    object_path: Path
    flags: tuple[str, ...] = ()
    defines: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class StageOutcome:
    name: StageName
    status: StageStatus
    touched: tuple[Path, ...] = ()


@dataclass(slots=True)
class BuildReport:
    """Result of one pipeline run."""

    stages: list[StageOutcome] = field(default_factory=list)
    compiled: list[Path] = field(default_factory=list)
    cleanup: tuple[Path, ...] = ()

    @property
    def executed(self) -> tuple[StageName, ...]:
        return tuple(outcome.name for outcome in self.stages if outcome.status == "executed")

    @property
    def skipped(self) -> tuple[StageName, ...]:
        return tuple(outcome.name for outcome in self.stages if outcome.status == "skipped")

    @property
    def touched(self) -> tuple[Path, ...]:
        return tuple(path for outcome in self.stages for path in outcome.touched)

    def outcome(self, name: StageName) -> StageOutcome | None:
        for outcome in self.stages:
            if outcome.name == name:
                return outcome
        return None

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        return {
            "stages": [
                {
                    "name": outcome.name,
                    "status": outcome.status,
                    "touched": [str(path) for path in outcome.touched],
                }
                for outcome in self.stages
            ],
            "compiled": [str(path) for path in self.compiled],
            "cleanup": sorted(str(path) for path in self.cleanup),
        }
