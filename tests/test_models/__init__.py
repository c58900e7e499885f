"""Tests for shared models."""
