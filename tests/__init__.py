"""
Tests package - Test suite for the management cluster registration job.

Contains:
- unit/: Unit tests for individual components and full registration runs
- fixtures/: In-memory fake of the Kubernetes API
"""
