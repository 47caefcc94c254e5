"""Builders for provider clients."""

from .loadbalancer import create_loadbalancer_client_from_spec

__all__ = ["create_loadbalancer_client_from_spec"]
