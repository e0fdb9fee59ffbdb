"""L5 Orchestration — step catalogue, runner, handoff and summary."""
