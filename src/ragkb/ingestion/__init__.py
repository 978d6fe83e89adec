"""
Ingestion — chunking, embedding, and persisting documents.

Raw document text is split into overlapping chunks, every chunk of a
document is embedded in one batched provider call, and the document row
followed by its chunk rows is written to the vector store.
"""
