"""
Acceptor - Test Suite Package.

Contains Pytest-based tests for the registry, section path resolution,
traversal passes, parameter store and parameter file loader.
"""
