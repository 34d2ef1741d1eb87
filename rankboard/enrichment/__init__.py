from rankboard.enrichment.service import EnrichmentService

__all__ = ["EnrichmentService"]
