"""Staff compensation, assignment reconciliation and payroll batching."""

__version__ = "0.1.0"
