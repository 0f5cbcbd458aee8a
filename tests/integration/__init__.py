"""Integration tests for notevault.

These tests drive a Workspace against a real temporary directory and check
the catalog after complete create/rename/delete journeys.
"""
