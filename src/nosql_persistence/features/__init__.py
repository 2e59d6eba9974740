"""Features module for nosql-persistence.

Entity model, query model, patch builder, pagination engine, repository
facade and the bundled providers.
"""
