from rankboard.fetchers.orchestrator import fetch_dataset

__all__ = ["fetch_dataset"]
