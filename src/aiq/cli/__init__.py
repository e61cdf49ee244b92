"""AIQ command-line interface."""
