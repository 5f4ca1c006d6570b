"""
Models package - Pydantic models for type-safe registration handling.

Defines data models for:
- The immutable run configuration
- The SveltosCluster fields written by the job
"""
