"""LightORM command-line interface."""
