"""
LLM integration layer.

Responsibilities:
- Manage OpenAI gateway configuration and credentials.
- Build the two-message prompt from a group's answers and candidate movies.
- Call the chat completion model to explain why each movie fits the group.
- Detect the "no confident recommendation" sentinel in the free-text reply.
"""
