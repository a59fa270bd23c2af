"""
Request tracing and cost accounting.

Responsibilities:
- Record one trace per recommendation request with a span per remote call.
- Estimate token usage and monetary cost per model.
- Summarise retrieval scores (top, average, minimum).
- Export finished traces to Opik and flush them before the response is sent.
"""
