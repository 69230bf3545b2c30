"""Clients for external collaborators: geocoding, maps, vision, storage."""
