"""L0 Data — static tables. No logic, no I/O."""
