"""HTTP layer: FastAPI routes, request/response schemas and middleware."""
