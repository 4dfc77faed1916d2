"""Test suite for the pixelcraft imaging core."""
