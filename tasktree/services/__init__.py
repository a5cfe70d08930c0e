"""Task-tree engines and the services composing them."""
