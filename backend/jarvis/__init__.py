"""
Core package for the Jarvis backend.

It exposes the structured error taxonomy, the Result type, the SQLite-backed
storage layer, and the domain entities persisted through repositories.
"""
