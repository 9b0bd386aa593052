"""Scan pipeline: extract → generate → evaluate → aggregate."""
