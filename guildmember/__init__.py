"""guildmember — membership entity model for a multi-tenant chat platform.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
