"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2) live here.
- The domain knows nothing about the filesystem or the CLI: only vault concepts.
"""
