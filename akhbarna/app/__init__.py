"""Akhbarna application package."""
