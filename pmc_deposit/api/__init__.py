"""HTTP surface for the PMC deposit workflow."""
