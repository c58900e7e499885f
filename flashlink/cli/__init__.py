"""Command line interface for FlashLink."""
