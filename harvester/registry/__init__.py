"""Marketplace registry access: query flags, response types and client."""
