from __future__ import annotations

from typing import List, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field

from middleware_stack.equivalence import EquivalenceChecker, are_types_equivalent
from middleware_stack.errors import StackValidationError
from middleware_stack.models import StackItem


class ContractMismatch(BaseModel):
    """One incompatibility between a step and the step that follows it."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., description="Position of `self` in the stack (`next` is index + 1)")
    self_name: str
    next_name: str
    self_contract: Literal["next_input", "next_output"]
    next_contract: Literal["own_input", "own_output"]
    direction: Literal["argument", "output"]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def message(self) -> str:
        return (
            f"Types don't match between self:{self.self_name}.{self.self_contract} "
            f"and next:{self.next_name}.{self.next_contract} {self.direction} type"
        )

    def __str__(self) -> str:
        return self.message


def validate_stack(
    stack: Sequence[StackItem],
    are_equivalent: EquivalenceChecker = are_types_equivalent,
) -> List[ContractMismatch]:
    """
    Check every adjacent pair of steps for contract compatibility.

    Mismatches are returned, never raised. The input check is skipped when `self` declares no
    `next_input` (terminal step); the output check always runs.
    """
    errors: List[ContractMismatch] = []
    for i in range(len(stack) - 1):
        current = stack[i]
        following = stack[i + 1]

        if current.next_input is not None and not are_equivalent(following.own_input, current.next_input):
            errors.append(
                ContractMismatch(
                    index=i,
                    self_name=current.display_name,
                    next_name=following.display_name,
                    self_contract="next_input",
                    next_contract="own_input",
                    direction="argument",
                )
            )

        if not are_equivalent(current.next_output, following.own_output):
            errors.append(
                ContractMismatch(
                    index=i,
                    self_name=current.display_name,
                    next_name=following.display_name,
                    self_contract="next_output",
                    next_contract="own_output",
                    direction="output",
                )
            )
    return errors


def ensure_valid_stack(
    stack: Sequence[StackItem],
    are_equivalent: EquivalenceChecker = are_types_equivalent,
) -> None:
    diagnostics = validate_stack(stack, are_equivalent)
    if diagnostics:
        raise StackValidationError(diagnostics)


__all__ = ["ContractMismatch", "ensure_valid_stack", "validate_stack"]
