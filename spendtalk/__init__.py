"""
SpendTalk - Source Package

A personal expense tracker driven by a single command box.
Users type sentences; a deterministic interpreter turns each one
into exactly one typed command.

DESIGN PRINCIPLES:
1. The interpreter is pure: text (and a clock) in, one command out
2. The interpreter never fails; unknown input becomes Help
3. State is immutable; every change yields a new snapshot
4. Every submitted command is audited
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SpendTalk Team"
