"""REST adapter of the catalog services."""
