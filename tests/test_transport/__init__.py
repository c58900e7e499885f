"""Tests for the HTTP transports."""
