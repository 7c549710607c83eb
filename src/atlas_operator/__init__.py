"""Atlas Operator: reconciles Atlas resources declared in Kubernetes."""

__version__ = "2.1.0"
