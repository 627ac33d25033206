"""Read-side NetworkX view of the connection edge set."""
