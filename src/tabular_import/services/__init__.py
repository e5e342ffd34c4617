"""Import services: mapping, coercion, validation, workflow and commit."""
