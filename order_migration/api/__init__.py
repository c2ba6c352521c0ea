"""HTTP API for starting and monitoring migration runs."""
