"""Unit tests for the collaboration scenario."""
