"""Design-file extraction package.

Subpackages / modules:
- integrations: Figma REST client and URL parsing
- walker, styles, states: node traversal, style conversion, state inference
- extractor, tokens: component records/specifications and design tokens
- cache, session: in-memory TTL cache and per-client working-file tracking
- service: validated operation dispatch over all of the above
"""
