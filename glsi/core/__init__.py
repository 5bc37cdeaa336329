"""Core orchestration package.

Architectural role:
    Holds the cache-aware search pipeline that sits between the surfaces
    (CLI, HTTP, MCP) and the web/cache collaborators.

Composition:
    - `normalizer`: query to canonical cache key.
    - `consolidator`: fetch outcomes to one ordered document.
    - `engine`: `SearchEngine.run` / `SearchEngine.evict`.
    - `bootstrap`: resource wiring shared by every surface.
    - `types`, `exceptions`: shared data contracts and error taxonomy.
"""
