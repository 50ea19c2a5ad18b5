"""Infrastructure layer - remote services, persistence, observability and app lifecycle."""
