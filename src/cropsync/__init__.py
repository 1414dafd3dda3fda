"""
cropsync
========

Crop recommendation resolution and offline sync engine:

- agents: weather analysis, heuristic crop planning, recommendation orchestration
- cache: TTL recommendation cache with request coalescing
- llm: Bedrock generation client, prompts and response parsing
- storage: durable local store with pending operation log, DynamoDB remote store
- sync: reconciliation of local and remote saved crops
"""

__version__ = "0.1.0"
