"""
permscope: permission, menu and data-scoping engine.

The engine itself (``permscope.catalog``, ``permscope.security.engine``,
``permscope.scoping``) is plain Python with no FastAPI dependency; the
FastAPI application in ``permscope.main`` wires it to the store.
"""

__version__ = "0.1.0"
