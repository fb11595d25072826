"""
Test suite for todo-sync.

This package contains:
- Unit tests for the parser, daily note manager, matcher, client and config
- Engine tests against mocked collaborators
- End-to-end tests with a temp vault and an in-memory remote (tests/e2e)
"""
