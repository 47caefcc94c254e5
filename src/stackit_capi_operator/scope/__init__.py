"""Reconcile-scoped wrappers that flush object changes as one patch on exit."""

from .cluster import ClusterScope
from .machine import MachineScope
from .patch import PatchHelper, merge_patch

__all__ = ["ClusterScope", "MachineScope", "PatchHelper", "merge_patch"]
