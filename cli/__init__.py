"""Zeilumara command line interface."""
