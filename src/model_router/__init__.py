"""model-router - pick the right LLM for each request.

Modules:
    - routing: request classification, tier resolution, capability scoring
    - config: YAML plugin settings plus JSON dimension/tier/capability tables
    - decisions: append-only JSONL decision log with size-based rotation
    - plugin: host lifecycle (init, message hook, reload, destroy)
    - cli: `model-router` command line
"""

__version__ = "1.0.0"
