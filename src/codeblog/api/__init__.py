"""HTTP API for codeblog."""
