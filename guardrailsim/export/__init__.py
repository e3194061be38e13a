"""Raw result export to CSV and JSON."""
