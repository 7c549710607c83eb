"""Kubernetes API access."""

from .store import ObjectStore, load_kube_config

__all__ = ["ObjectStore", "load_kube_config"]
