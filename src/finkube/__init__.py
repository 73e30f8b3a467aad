# src/finkube/__init__.py
"""FinKube: cost accounting for Kubernetes clusters."""

__version__ = "0.3.0"
