"""regauth — Docker registry credential resolution."""
