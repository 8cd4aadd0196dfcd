"""squad-rag: embed SQuAD passages into Pinecone and answer questions over them."""

__version__ = "0.1.0"
