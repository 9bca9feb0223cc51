"""Storage and display adapters for msgrender."""
