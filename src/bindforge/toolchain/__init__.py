"""Native toolchain interfaces and implementations."""

from .base import Toolchain
from .cc import CcToolchain

__all__ = ["CcToolchain", "Toolchain"]
