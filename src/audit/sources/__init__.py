"""Collaborators that feed the report assembler."""
