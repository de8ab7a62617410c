"""
Handler dispatch.

Handlers run in-process by default. The isolated dispatcher runs each one in
a child interpreter instead::

    python -m markupaudit.remediation.dispatch <domain>

The child reads ``{"finding": {...}, "projectRoot": "..."}`` from stdin and
writes ``{"success": ..., "action"?: ..., "reason"?: ...}`` to stdout.
"""

import json
import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import List, Optional

from markupaudit.core.domains import get_domain
from markupaudit.core.findings import Finding
from markupaudit.errors import HandlerError, MarkupAuditError
from markupaudit.remediation.fixers import HandlerResult, get_fixer

logger = logging.getLogger(__name__)

DISPATCH_MODULE = "markupaudit.remediation.dispatch"


class Dispatcher(ABC):
    """Runs the handler for one finding."""

    def __init__(self, domain: str):
        self.domain = domain

    @abstractmethod
    def dispatch(self, finding: Finding, project_root: str) -> HandlerResult:
        """
        Apply the category handler to ``finding``.

        Raises:
            HandlerError: when the handler cannot be reached or answers
                with something other than a handler result.
        """
        pass


class InProcessDispatcher(Dispatcher):

    def dispatch(self, finding: Finding, project_root: str) -> HandlerResult:
        fixer = get_fixer(self.domain, finding.category)
        if fixer is None:
            raise HandlerError(f"No fix handler for category: {finding.category}")
        return fixer.apply(finding, project_root)


class SubprocessDispatcher(Dispatcher):
    """Runs every handler in its own interpreter, bounded by ``timeout`` seconds."""

    def __init__(self, domain: str, timeout: float = 30.0, python: Optional[str] = None):
        super().__init__(domain)
        self.timeout = timeout
        self.python = python or sys.executable

    def command(self) -> List[str]:
        return [self.python, "-m", DISPATCH_MODULE, self.domain]

    def dispatch(self, finding: Finding, project_root: str) -> HandlerResult:
        payload = json.dumps({"finding": finding.to_dict(), "projectRoot": project_root})
        logger.debug("Dispatching %s to %s", finding.id, " ".join(self.command()))
        try:
            completed = subprocess.run(
                self.command(),
                input=payload,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise HandlerError(f"Handler timed out after {self.timeout:g}s")
        except OSError as e:
            raise HandlerError(f"Could not start handler: {e}") from e

        if completed.returncode != 0:
            output = (completed.stderr or completed.stdout).strip()
            raise HandlerError(output or f"Handler exited with status {completed.returncode}")
        try:
            data = json.loads(completed.stdout)
        except ValueError:
            raise HandlerError(f"Malformed handler output: {completed.stdout.strip()!r}")
        return HandlerResult.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print(f"usage: python -m {DISPATCH_MODULE} <domain>", file=sys.stderr)
        return 2

    try:
        domain = get_domain(args[0])
        payload = json.load(sys.stdin)
        finding = Finding.from_dict(payload["finding"])
        result = InProcessDispatcher(domain.name).dispatch(finding, payload["projectRoot"])
    except KeyError as e:
        print(f"Error: missing {e} in handler input", file=sys.stderr)
        return 1
    except (MarkupAuditError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    json.dump(result.to_dict(), sys.stdout)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
