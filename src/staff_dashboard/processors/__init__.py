"""Source loading, normalization and cross-source joining."""
