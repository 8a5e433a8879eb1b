"""SQLAlchemy-backed repository implementations.

Import the concrete modules directly; this package deliberately re-exports
nothing so that domain modules can import them lazily.
"""
