"""Store models, schemas and session handling."""
