"""Orchestrator errors. Both kinds are fatal to the remaining sequence."""


class OrchestratorError(Exception):
    """Base exception for sequence execution failures."""

    def __init__(self, spec_name: str, message: str):
        super().__init__(f"{spec_name}: {message}")
        self.spec_name = spec_name
        self.message = message


class TriggerError(OrchestratorError):
    """A run could not be started."""

    pass


class PollError(OrchestratorError):
    """A started run's terminal state could not be determined."""

    def __init__(self, spec_name: str, run_id: int, pipeline_id: int, message: str):
        super().__init__(
            spec_name, f"run {run_id} of pipeline {pipeline_id}: {message}"
        )
        self.run_id = run_id
        self.pipeline_id = pipeline_id


class CredentialError(Exception):
    """No personal access token could be obtained."""

    pass
