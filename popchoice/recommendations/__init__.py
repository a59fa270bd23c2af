"""
Group movie recommendation engine.

Responsibilities:
- Validate a group's set-up preferences and per-person answers.
- Find the movies closest to the group's answers in the vector store.
- Hand the candidates to the LLM layer for a group-facing explanation.
- Return the recommendations in the shape the frontend expects.
"""
