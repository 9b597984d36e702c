"""Stage runner and the fixed IDL-to-extension pipeline."""

from .compile import compile_units
from .context import BuildContext, CleanupLog, CompilerFactory
from .runner import Stage, StageRunner
from .stages import PIPELINE, default_runner, link_spec

__all__ = [
    "BuildContext",
    "CleanupLog",
    "CompilerFactory",
    "PIPELINE",
    "Stage",
    "StageRunner",
    "compile_units",
    "default_runner",
    "link_spec",
]
