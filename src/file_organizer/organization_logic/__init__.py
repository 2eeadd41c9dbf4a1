"""
Organization logic module for rule-based file organization.
"""

from .rules import (
    DuplicateStrategy,
    ExclusionSet,
    FileRule,
    FolderRule,
    OrganizeConfig,
)
from .engine import RuleEvaluator, FileMatch, FolderAction, render_name_template

__all__ = [
    "DuplicateStrategy",
    "ExclusionSet",
    "FileRule",
    "FolderRule",
    "OrganizeConfig",
    "RuleEvaluator",
    "FileMatch",
    "FolderAction",
    "render_name_template",
]
