"""Core overlay engine, state tracking and source resolution."""
