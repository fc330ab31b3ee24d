"""Infrastructure layer — template source, terminology server client.

This layer depends on stdlib, third-party libs (requests, tenacity) and the
domain models it deserializes into. It must never import from services,
commands, or output.
"""
