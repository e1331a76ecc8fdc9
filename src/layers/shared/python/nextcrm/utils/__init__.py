"""Utility modules for NextCRM."""
