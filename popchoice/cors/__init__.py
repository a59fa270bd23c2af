"""
Cross-origin request policy.

Responsibilities:
- Read the allow-list of browser origins from the environment.
- Decide whether an inbound request's origin is permitted.
- Build the CORS headers attached to every response.
"""
