"""artrag ingest pipeline: record loader, chunker, embedding batcher."""

from artrag.ingest.batcher import BatcherConfig, EmbeddingBatcher, build_batches, estimate_tokens
from artrag.ingest.chunker import RecursiveChunker
from artrag.ingest.loader import load_documents, record_to_document

__all__ = [
    "BatcherConfig",
    "EmbeddingBatcher",
    "RecursiveChunker",
    "build_batches",
    "estimate_tokens",
    "load_documents",
    "record_to_document",
]
