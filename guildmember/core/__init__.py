"""Core Layer — membership entity and pure domain logic, no IO.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Role resolution and argument enforcement are pure functions
    - The only await in core/ is the hand-off to a CommandExecutor
"""
