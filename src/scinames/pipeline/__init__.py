"""Reconciliation stages: change filters, clustering, generators and validation."""

from .filters import ChangeFilter, NullChangeFilter, create_filter

__all__ = ["ChangeFilter", "NullChangeFilter", "create_filter"]
