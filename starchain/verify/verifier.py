# starchain/verify/verifier.py
from typing import List, Optional, Sequence
from dataclasses import dataclass

from starchain.core.types import Block


@dataclass
class VerificationFailure:
    index: int
    message: str
    category: str = "general"  # "digest", "sequence", "linkage"


@dataclass
class VerificationResult:
    is_valid: bool
    message: str = ""
    failures: List[VerificationFailure] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[VerificationFailure]:
        return self.failures[0] if self.failures else None

    @property
    def failed_indexes(self) -> List[int]:
        """Positions with at least one failure, in chain order, each listed once."""
        return sorted({f.index for f in self.failures})

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Chain is valid ✓"
        lines = [f"Verification FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class ChainVerifier:
    """
    Walks a block sequence and reports every integrity failure.
    The scan never stops at the first failure and never modifies a block.
    """

    def verify(self, chain: Sequence[Block]) -> VerificationResult:
        result = VerificationResult(True)

        for i, block in enumerate(chain):
            if not block.validate_self():
                result.failures.append(VerificationFailure(i, "Stored digest does not match block contents", "digest"))
            if block.sequence_position != i:
                result.failures.append(VerificationFailure(
                    i, f"Sequence mismatch: expected {i}, got {block.sequence_position}", "sequence"))
            if i == 0:
                if block.previous_digest is not None:
                    result.failures.append(VerificationFailure(i, "Genesis block must not link to a predecessor", "linkage"))
            elif block.previous_digest != chain[i - 1].digest:
                result.failures.append(VerificationFailure(
                    i, "previous_digest does not match previous block digest", "linkage"))

        result.is_valid = not result.failures
        result.message = "Valid chain" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result
