"""Annotate on-screen Japanese text: OCR runs, morphemes and their screen boxes."""

__version__ = "0.3.0"
