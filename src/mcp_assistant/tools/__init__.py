"""Direct-API tools (weather and air quality)."""
