"""Application services - use cases that orchestrate domain entities and ports."""
