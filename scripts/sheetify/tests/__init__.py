"""
Tests for sheetify.
"""
