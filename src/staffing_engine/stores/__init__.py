"""Record store interfaces and implementations."""

from staffing_engine.stores.base import (
    AssignmentFilter,
    AssignmentNotFoundError,
    AssignmentStore,
    BatchStore,
    DuplicateAssignmentError,
    EventLookup,
    RateRuleStore,
    StaffDirectory,
    Transactional,
)
from staffing_engine.stores.sql import SqlRecordStore

__all__ = [
    "AssignmentFilter",
    "AssignmentNotFoundError",
    "AssignmentStore",
    "BatchStore",
    "DuplicateAssignmentError",
    "EventLookup",
    "RateRuleStore",
    "StaffDirectory",
    "Transactional",
    "SqlRecordStore",
]
