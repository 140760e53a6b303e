"""Random walk route generation service."""
