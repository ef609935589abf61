"""Business logic services for the certsmith operator."""
