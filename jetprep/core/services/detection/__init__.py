"""Read-only host probes."""
