"""Tabular sink, URL source and progress store adapters."""
