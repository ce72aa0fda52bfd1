"""Tests for the web bootstrap service."""
