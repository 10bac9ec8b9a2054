"""Local storage for the Withings token pair."""
