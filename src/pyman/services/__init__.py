"""Reports built on top of the resolution engine."""
