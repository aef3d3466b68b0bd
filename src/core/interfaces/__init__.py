"""Core interfaces/abstractions.

Why:
- Defines contracts (Protocol) that concrete validators implement.
- Lets the project validator depend on abstractions, not on specific checks.
"""
