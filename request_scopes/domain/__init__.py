"""Framework-independent scope resolution."""
