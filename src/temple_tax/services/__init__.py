"""Service layer: request orchestration and logging."""
