"""Service layer: framework-free session-token operations.

Import concrete services from their modules (``insapp.services.tokens``);
this package stays import-light so ``insapp.security`` can depend on
``insapp.services._shared`` without cycles.
"""
