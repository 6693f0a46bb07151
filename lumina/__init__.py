"""
Lumina - Course authoring and learner progress engine.

Subpackages:
- schemas: course content, drafts, profiles and enrollments
- classroom: progress, streak, navigation and editing
- repository: local and remote storage behind one contract
- services: learner, authoring, generation and session operations
"""

__version__ = "0.1.0"
