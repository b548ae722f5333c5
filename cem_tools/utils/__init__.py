"""Diagnostic helpers built on the CEM codec."""
