"""NLP tiers for intent routing and query-parameter extraction.

Module scope:
- Rule tier (`pattern_matcher`) over the static lexicon (`catalog`).
- Lexical tier (`lexical_classifier`) with shared preprocessing (`text_preprocessor`).
- Embedding tier (`embedding_scorer`) over an injected provider (`embedding_model`).
- Facet/entity extraction (`facet_extractor`).
- Orchestration (`intent_router`).

Determinism profile:
- Rule, lexical and extraction logic are deterministic; embedding scores depend
  on the provider.
"""
