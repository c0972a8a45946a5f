# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum domain services.

This package provides curriculum progression:
- CurriculumTree: In-memory tree with completion cascade
- CurriculumProgressService: Per-enrollment copies of program curricula

Each enrollment owns its own copy of the program's curriculum, so one
student's progress never touches another's or the program template.
"""

from src.domains.curriculum.progress import CurriculumProgressService, CurriculumUpdate
from src.domains.curriculum.tree import CurriculumNode, CurriculumTree

__all__ = [
    # Tree
    "CurriculumNode",
    "CurriculumTree",
    # Progress
    "CurriculumProgressService",
    "CurriculumUpdate",
]
