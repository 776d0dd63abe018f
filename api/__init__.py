"""Zeilumara HTTP API."""
