"""Node connections, players and the coordinating manager."""
