"""Read-only reporting over campaigns, donations and users."""
