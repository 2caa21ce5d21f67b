"""Outcome of a push run."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FailedDeployment:
    """A function deployment whose build ended in `failed`."""

    name: str
    function_id: str
    deployment_id: str


@dataclass
class PushResult:
    """Counts and failures collected while pushing one resource kind."""

    successfully_pushed: int = 0
    successfully_deployed: int = 0
    errors: list[Exception] = field(default_factory=list)
    failed_deployments: list[FailedDeployment] = field(default_factory=list)

    def merge(self, other: "PushResult") -> "PushResult":
        """Accumulate another result into this one."""
        self.successfully_pushed += other.successfully_pushed
        self.successfully_deployed += other.successfully_deployed
        self.errors.extend(other.errors)
        self.failed_deployments.extend(other.failed_deployments)
        return self
