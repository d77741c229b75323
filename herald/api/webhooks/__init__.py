"""GitHub App webhook endpoint."""
