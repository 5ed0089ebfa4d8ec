"""
Stores Package - read access to assignment records.
"""

from assistant_gateway.stores.assignments import (
    Assignment,
    AssignmentStore,
    AssignmentStoreError,
    InMemoryAssignmentStore,
)

__all__ = [
    "Assignment",
    "AssignmentStore",
    "AssignmentStoreError",
    "InMemoryAssignmentStore",
]
