"""Read-only installation coverage and delivery-mode queries."""
