"""HTTP API for remodel estimates."""
