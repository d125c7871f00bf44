"""Query planning, availability resolution, distance and viewport sampling."""
