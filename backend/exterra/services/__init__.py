"""Estimation services: fallback chains and the remodel pipeline."""
