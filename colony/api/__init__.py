"""REST API — FastAPI app factory and routes."""
