"""Sequential execution of freshness-gated stages."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from bindforge.errors import BindforgeError
from bindforge.freshness import Gate, touch
from bindforge.models import BuildReport, StageName, StageOutcome
from bindforge.pipeline.context import BuildContext

GateFn = Callable[[BuildContext], tuple[Gate, ...]]


def _no_gates(_context: BuildContext) -> tuple[Gate, ...]:
    return ()


def _never(_context: BuildContext) -> bool:
    return False


@dataclass(frozen=True, slots=True)
class Stage:
    """A named pipeline step.

    ``gates`` are computed lazily because later stages gate on files that
    earlier stages produce. ``touch`` lists gates whose existing outputs are
    advanced in time when they are still stale after the action ran, which
    happens when the action found nothing to rewrite.
    """

    name: StageName
    gates: GateFn
    action: Callable[[BuildContext], None]
    touch: GateFn = _no_gates
    force: Callable[[BuildContext], bool] = _never


@dataclass(frozen=True, slots=True)
class StageRunner:
    stages: tuple[Stage, ...]

    def run(self, context: BuildContext) -> BuildReport:
        report = BuildReport()
        for stage in self.stages:
            try:
                report.stages.append(self._run_stage(stage, context))
            except BindforgeError as exc:
                context.logger.log(
                    operation="stage_failed",
                    stage=stage.name,
                    artifact=None,
                    message="Stage failed; aborting pipeline.",
                    level="error",
                    extra=exc.to_dict(),
                )
                raise

        report.compiled = list(context.compiled())
        report.cleanup = context.cleanup.entries()
        return report

    def _run_stage(self, stage: Stage, context: BuildContext) -> StageOutcome:
        if not self._is_stale(stage, context):
            context.logger.log(
                operation="stage_skip",
                stage=stage.name,
                artifact=None,
                message="Stage is up to date.",
            )
            return StageOutcome(name=stage.name, status="skipped")

        context.logger.log(
            operation="stage_start",
            stage=stage.name,
            artifact=None,
            message="Running stage.",
        )
        stage.action(context)
        touched = self._refresh(stage, context)
        return StageOutcome(name=stage.name, status="executed", touched=touched)

    def _is_stale(self, stage: Stage, context: BuildContext) -> bool:
        if stage.force(context):
            return True
        # every gate is evaluated so a missing input always aborts
        verdicts = [gate.is_stale() for gate in stage.gates(context)]
        return any(verdicts)

    def _refresh(self, stage: Stage, context: BuildContext) -> tuple[Path, ...]:
        touched: list[Path] = []
        for gate in stage.touch(context):
            if not gate.is_stale():
                continue
            not_before = gate.newest_input()
            for ref in gate.outputs:
                if not ref.path.exists():
                    continue
                touch(ref, not_before=not_before)
                touched.append(ref.path)
                context.logger.log(
                    operation="touch",
                    stage=stage.name,
                    artifact=ref.path,
                    message="Content unchanged; advanced timestamp.",
                )
        return tuple(touched)
