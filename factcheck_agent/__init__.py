"""Top-level package for the news fact-check agent.

This package contains the application entrypoint and all supporting modules
for fetching, verifying, and publishing fact-checked news.
"""

__all__ = []
