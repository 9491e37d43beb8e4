"""Core orchestration package.

Architectural role:
    Sits between the API/CLI adapters and the NLP tiers, data tool, and response
    rendering.

Composition:
    - `engine`: Task pipeline (classify, dispatch, render, cache).
    - `classification_types`: Shared classification schema consumed by the
      engine and the data tool.
"""
