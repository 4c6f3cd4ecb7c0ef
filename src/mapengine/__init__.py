"""Resilience map engine — dataset ingestion, centroids, aggregation, and
visibility control for the NYC food/heat/waste dashboard."""
