"""HTTP API (FastAPI routers, schemas, dependencies)."""
