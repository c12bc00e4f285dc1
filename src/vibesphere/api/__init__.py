"""HTTP API for VibeSphere."""
