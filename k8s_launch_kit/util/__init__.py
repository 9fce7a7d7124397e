"""
Utility functions and helpers.

This package contains reusable utilities for file operations, logging,
terminal output and template rendering.

Modules:
- files: Directory and file helpers
- logging: Logging configuration
- progress: rich console output and spinners
- redact: Scrubbing secrets from error messages
- templates: Jinja2 rendering of profile templates
"""
