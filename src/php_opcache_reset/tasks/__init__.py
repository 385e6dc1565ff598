"""Deployment tasks around the PHP opcache.

Provides:
- Settings loaded from .env
- Structured logging
- A small CLI surface
- The create-script and execute tasks
"""
