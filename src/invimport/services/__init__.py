"""Import pipeline and read-side services."""
