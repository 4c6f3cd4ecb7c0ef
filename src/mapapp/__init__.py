"""NYC Resilience Map — FastAPI server around the map engine."""
