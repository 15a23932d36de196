"""Application lifecycle plugins: the FastAPI app and router mounting."""
