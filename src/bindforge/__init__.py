"""Incremental build orchestration for IDL-generated extension modules."""

from .config import BuildConfig
from .errors import (
    BindforgeError,
    CompileError,
    DuplicateParameterError,
    ErrorCode,
    GenerationError,
    LinkError,
    MissingInputError,
    ParseError,
    ValidationError,
)
from .freshness import Gate, is_stale, touch
from .models import STAGE_ORDER, ArtifactRef, BuildReport, CompileUnit, Invocation, StageOutcome
from .module import ModuleBuild
from .signature import ParamList, Variable

__all__ = [
    "ArtifactRef",
    "BindforgeError",
    "BuildConfig",
    "BuildReport",
    "CompileError",
    "CompileUnit",
    "DuplicateParameterError",
    "ErrorCode",
    "Gate",
    "GenerationError",
    "Invocation",
    "LinkError",
    "MissingInputError",
    "ModuleBuild",
    "ParamList",
    "ParseError",
    "STAGE_ORDER",
    "StageOutcome",
    "ValidationError",
    "Variable",
    "is_stale",
    "touch",
]
