"""
Persona Audit

Multi-persona UX evaluation: one backend audit per persona, optional
per-persona redesigns, cross-persona aggregation and report export.
"""

__version__ = "0.1.0"
