"""HTTP surface (FastAPI) over the interaction graph engine."""
