"""TutorOps Scheduling Engine.

Session scheduling, credit ledger and curriculum progression backend for
the tutoring operations platform (admin, teacher, student and parent portals).

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
