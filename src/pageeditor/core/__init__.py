"""Core filesystem logic, independent of the HTTP layer."""
