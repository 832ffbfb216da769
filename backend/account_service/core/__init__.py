# account_service/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default admin creation on first startup
- collection: Persistence access layer with lifecycle hooks
- db: Database configuration and connection management
- error_handlers: Centralized translation of exceptions into responses
- errors: Operational error taxonomy
- security: Password hashing and JWT issuance/verification
"""
