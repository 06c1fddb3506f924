"""Capability probes for host tools used during target detection."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class ProbeStatus(StrEnum):
    PRESENT = "present"
    ABSENT = "absent"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    status: ProbeStatus
    output: str = ""

    @property
    def present(self) -> bool:
        # Indeterminate counts as absent.
        return self.status is ProbeStatus.PRESENT


class CapabilityProbe(Protocol):
    def probe(self, argv: Sequence[str]) -> ProbeResult:
        """Run *argv* and classify whether the tool behind it is usable."""


@dataclass(slots=True)
class SubprocessProbe:
    """Probe by running the tool; stdout and stderr are merged into ``output``."""

    timeout: float = 10.0

    def probe(self, argv: Sequence[str]) -> ProbeResult:
        try:
            completed = subprocess.run(
                list(argv),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return ProbeResult(status=ProbeStatus.ABSENT)
        except subprocess.TimeoutExpired as exc:
            output = exc.output if isinstance(exc.output, str) else ""
            return ProbeResult(status=ProbeStatus.INDETERMINATE, output=output)
        except OSError:
            return ProbeResult(status=ProbeStatus.INDETERMINATE)

        if completed.returncode == 0:
            return ProbeResult(status=ProbeStatus.PRESENT, output=completed.stdout or "")
        return ProbeResult(status=ProbeStatus.INDETERMINATE, output=completed.stdout or "")
