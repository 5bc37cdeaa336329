"""Retrieval package.

Architectural role:
    Hosts the external collaborators the engine depends on for acquiring
    content from the web.

Scope:
    - `web`: result discovery, concurrent page fetching and text extraction.
"""
