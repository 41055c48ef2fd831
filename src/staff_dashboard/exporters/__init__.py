"""Serialization of reconciliation results for the rendering layer."""
