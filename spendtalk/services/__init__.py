"""External services: state persistence."""
