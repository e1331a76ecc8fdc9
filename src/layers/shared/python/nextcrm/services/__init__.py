"""Domain services for NextCRM."""
