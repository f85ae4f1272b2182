"""Food donation marketplace backend."""
