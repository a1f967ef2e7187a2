"""Assessment authoring, delivery and grading service."""
