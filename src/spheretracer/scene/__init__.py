"""Scene storage, management and preset scenes."""
