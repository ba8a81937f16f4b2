"""HTTP verb handlers."""
