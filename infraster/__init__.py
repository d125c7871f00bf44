"""Infraster: search and map sampling over sports and leisure infrastructures."""
