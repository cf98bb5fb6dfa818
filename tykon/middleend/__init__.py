"""Middleend package - cross-declaration state shared by the emitters."""

from .constants import ConstantTable
from .index import NameIndex, build_index

__all__ = ["ConstantTable", "NameIndex", "build_index"]
