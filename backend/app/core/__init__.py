# app/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Application initialization and default admin creation
- db: Database configuration and connection management
- errors: Domain exceptions raised by the licensing services
- security: Password hashing, access tokens and download tokens
"""
