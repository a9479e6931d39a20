"""Side-effect-free what-if capacity scenarios."""
