# tests/__init__.py
"""
Test suite for the agent chat service.

This package contains all tests for the service:
- unit: Unit tests for individual components
- integration: API, history store and transport tests against SQLite
- security: Identity and hardening tests
- factories: Scripted model providers and routers
"""
