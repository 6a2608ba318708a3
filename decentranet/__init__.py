"""
DecentraNet node package initializer

Keep this module lightweight. Importing the package must not pull in
FastAPI or requests, so the runtime pieces stay usable from scripts.
"""

__all__ = []
