"""L4 Execution — functions that WRITE to the system."""
