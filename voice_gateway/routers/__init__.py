"""HTTP routers for the ingestion boundary."""
