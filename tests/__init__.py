"""
Tests Package - Unit and Integration Tests

Test structure:
- tests/conftest.py - Shared pytest fixtures (settings, fake upstream API)
- tests/test_*.py - One module per application module

Upstream HTTP calls are faked with httpx.MockTransport; retry sleeps are
recorded instead of awaited.
"""
