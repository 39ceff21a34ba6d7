"""Collaborators used by the fetch-questions handler."""
