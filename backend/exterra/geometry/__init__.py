"""Geometry helpers: unit conversions and footprint dimensions."""
