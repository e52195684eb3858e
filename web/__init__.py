"""Flask HTTP API for starting reviews and polling their progress."""
