"""Service configuration and logging bootstrap."""
