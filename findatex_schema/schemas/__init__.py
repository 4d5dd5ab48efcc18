"""Bundled EPT / TPT field catalogs (JSON)."""
