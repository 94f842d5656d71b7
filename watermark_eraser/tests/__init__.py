"""Test suite for Watermark Eraser."""
