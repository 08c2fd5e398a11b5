"""Pure normalization functions (titles, keys, tempo, genres, vibe)."""
