"""Parsing of UBML document text."""
