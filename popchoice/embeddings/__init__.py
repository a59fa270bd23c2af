"""
Embeddings layer for semantic search.

Responsibilities:
- Combine a group's run time and answers into one embedding input.
- Call the OpenAI-compatible embeddings endpoint at request time.
- Verify the returned vector has the dimension the movie index was built with.
"""
