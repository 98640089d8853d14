"""Record store layer.

This package converts assembled records into the persisted schema and
writes them to a TSN-keyed store.
"""
