"""Camera models for primary ray generation."""
