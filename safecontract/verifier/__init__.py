"""Verdict aggregation and proof certificates."""
