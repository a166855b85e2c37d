"""HTTP layer: FastAPI application, dependencies and routers."""
