"""HTTP routes - thin wrappers over the application services."""
