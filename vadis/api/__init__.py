"""HTTP boundary for Vadis: FastAPI app, dependencies and routers."""
