"""Domain layer — template model, ECL compiler, verifier, lexical matcher.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
