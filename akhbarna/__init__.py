"""Akhbarna news portal backend."""
