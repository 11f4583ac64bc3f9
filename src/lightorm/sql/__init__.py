"""SQL synthesis: dialects, type mapping, DDL and CRUD statements."""
