"""Prometheus metrics for the service, exposed at /metrics."""
