"""Application services for zotnotes."""
