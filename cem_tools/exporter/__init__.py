"""Export CEM models to other formats."""
