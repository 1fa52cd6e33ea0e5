"""
AI services package.

- inference_client: rate-limited, retried, cached calls to the inference API
- models: text generation, embeddings, sentiment and zero-shot classification
- agents: prompt-driven agents plus the orchestrator that dispatches them

Agents never raise from ``run``; failures come back as typed results.
"""
