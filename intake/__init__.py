"""Claim intake wizard: backend client, claim status model and step controller."""

__version__ = "0.1.0"
