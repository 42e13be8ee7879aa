"""Core services: errors, pacing and the completion client."""
