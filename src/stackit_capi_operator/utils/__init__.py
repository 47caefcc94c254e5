"""Utility functions for the STACKIT Cluster API Operator."""

from .conditions import set_credentials_ready_condition, set_paused_condition, set_ready_condition, update_condition
from .context import get_context_dict, get_correlation_id, reconcile_context
from .errors import sanitize_exception
from .events import emit_event
from .kube import ObjectIdentity, get_object
from .owners import get_owner_cluster, is_paused
from .secret_manager import SecretManager
from .secrets import SecretStore, decode_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_credentials_ready_condition",
    "set_paused_condition",
    "get_context_dict",
    "get_correlation_id",
    "reconcile_context",
    "sanitize_exception",
    "emit_event",
    "ObjectIdentity",
    "get_object",
    "get_owner_cluster",
    "is_paused",
    "SecretManager",
    "SecretStore",
    "decode_secret_value",
]
