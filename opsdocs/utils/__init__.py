"""Shared helpers for the OpsDocs backend."""
