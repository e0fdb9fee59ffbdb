"""L1 Domain — pure text and version logic. No I/O, no subprocess."""
