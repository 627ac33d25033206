"""Infrastructure layer: database, repositories, graph, and locking."""
