"""
Utilities Package for Uptime Workers

Logging setup, shared helpers and check document validation.
"""
