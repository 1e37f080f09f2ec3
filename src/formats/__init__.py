"""Format parsers and the file data producer."""
