"""Shared helpers: errors, logging, text, media sniffing and OCR preprocessing."""
