"""Diff target selection and retrieval."""

from ._models import DiffResult, NoticeLevel, SelectionNotice, TargetValidation
from ._notify import LogNotifier, Notifier, build_notice
from ._selector import SmartDiffSelector

__all__ = [
    "DiffResult",
    "LogNotifier",
    "NoticeLevel",
    "Notifier",
    "SelectionNotice",
    "SmartDiffSelector",
    "TargetValidation",
    "build_notice",
]
