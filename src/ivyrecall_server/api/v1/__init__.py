"""Version 1 of the ivyrecall HTTP API."""
