"""
Application package for the Smena hockey team backend.

It exposes subpackages for API routers, core utilities (including Telegram
Mini App authentication), domain models, services, and repositories.
"""
