"""
Serving: FastAPI application answering questions over the indexed passages.
"""
