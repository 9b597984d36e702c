"""Self-contained collaborators for tests and development builds."""

from .emit import (
    InProcessCoreEmitter,
    InProcessHostBinding,
    InProcessHostBindingFactory,
    ModuleBindings,
    signature,
    write_if_modified,
)
from .idl import InProcessHierarchyCompiler, parse_file
from .toolchain import InProcessGlueTranspiler, InProcessToolchain

__all__ = [
    "InProcessCoreEmitter",
    "InProcessGlueTranspiler",
    "InProcessHierarchyCompiler",
    "InProcessHostBinding",
    "InProcessHostBindingFactory",
    "InProcessToolchain",
    "ModuleBindings",
    "parse_file",
    "signature",
    "write_if_modified",
]
