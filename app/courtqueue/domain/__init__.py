"""Court queue domain - entities, allocation engine and persistence."""
