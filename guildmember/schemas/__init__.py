"""Pydantic Schemas — member snapshots and mutation requests.

Invariants:
    - Schemas validate at the boundary (wire payloads in, mutation requests out)
    - Domain types from core/ used for identifier fields
"""
