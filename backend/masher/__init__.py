"""Button masher match server."""
