"""Optional HTTP surface."""
