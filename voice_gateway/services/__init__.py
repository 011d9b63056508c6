"""Services: pipeline, registry, ingestion and remote adapters."""
