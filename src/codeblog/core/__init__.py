"""Core configuration for codeblog."""
