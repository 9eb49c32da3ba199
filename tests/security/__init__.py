# tests/security/__init__.py
"""
Security-focused tests.

Security tests verify that identity, capability gating and error
reporting cannot be used to reach another caller's data or internals.

Guidelines:
- Test unauthorized access attempts
- Test identity boundaries (one owner's history, another owner's request)
- Test production-safe error messages
- Test CORS configuration
"""
