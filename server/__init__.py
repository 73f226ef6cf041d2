"""HTTP front end for the diagram sanitizer."""
