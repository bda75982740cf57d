"""site_health.crawler: Normalizer, link extractor, fetch gate, site crawler and orchestrator."""
