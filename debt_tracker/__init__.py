"""
Debt Tracker - Source Package

A personal debt tracker: a balance that accrues daily interest, is reduced
by payments or increased by borrowing, survives restarts, and keeps a short
undo history.

DESIGN PRINCIPLES:
1. One state object, owned by one controller
2. Interest math is a pure function
3. Every change is saved, and a failed save is reported, never hidden
4. Every command is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Debt Tracker Team"
