"""Annual return and inflation data loading."""
