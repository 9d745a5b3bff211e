"""Reconciliation engine: path mapping, walking, checksums, planning, execution."""
