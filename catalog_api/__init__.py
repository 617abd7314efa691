"""Game Catalog API: a FastAPI service with configurable CORS and content negotiation."""
