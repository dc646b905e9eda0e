from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ErrorKind = Literal[
    "NotYourTurn",
    "TargetNotFound",
    "InvalidCapture",
    "InvalidBuild",
    "InvalidTrail",
    "StagingViolation",
    "MalformedAction",
]


@dataclass(frozen=True)
class Rejection:
    """Why an action was refused. Carries no state change."""

    kind: ErrorKind
    message: str

    def to_dict(self) -> dict[str, object]:
        return {"errorKind": self.kind, "message": self.message}


class MalformedActionError(ValueError):
    """Raised when an inbound action envelope cannot be decoded."""

    def to_rejection(self) -> Rejection:
        return Rejection(kind="MalformedAction", message=str(self))
