"""Cross-cutting utilities: configuration readers, errors, logging, middleware."""
