"""Import other formats into CEM models."""
