"""
Invoice Extraction Backend Application.

A FastAPI service that stores uploaded PDF invoices, extracts their text,
normalizes it into structured invoice records with an external language
model, and exposes the reviewed records through a CRUD API.
"""

__version__ = "1.0.0"
