"""Test suite for the pytest-world package.

This package contains unit and integration tests validating reference
resolution, overload-resolving invocation, deferred results, table
matching, named tasks, and the pytest and command-line integrations.
"""
