"""Reconcilers for the STACKIT infrastructure resources."""

from .base import ReconcileResult
from .stackitcluster import STACKITClusterReconciler
from .stackitmachine import STACKITMachineReconciler

__all__ = ["ReconcileResult", "STACKITClusterReconciler", "STACKITMachineReconciler"]
