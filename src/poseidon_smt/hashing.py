"""
Poseidon hash over the BN254 scalar field.

This is the domain hash used by every tree in the package. It is the
circomlib / iden3 variant of Poseidon: the state is ``[0, *inputs]`` and the
first state element after the permutation is the digest. Because the same
parameters are used by circom circuits, roots and paths produced here can be
checked inside a zero-knowledge circuit.
"""

from typing import Iterable, List

from circomlibpy.poseidon import MODUL, N_ROUNDS_P, PoseidonHash

from poseidon_smt.exceptions import FieldElementError

# Order of the BN254 scalar field. Every field element lives in [0, FIELD_MODULUS).
FIELD_MODULUS = MODUL

# Poseidon widths are parameterised for 1..16 inputs (state width 2..17).
MAX_INPUTS = len(N_ROUNDS_P)

_poseidon = PoseidonHash()


def is_field_element(value) -> bool:
    """Return True if ``value`` is an integer in ``[0, FIELD_MODULUS)``."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < FIELD_MODULUS


def check_field_element(value, name: str = "value") -> int:
    """
    Validate that ``value`` is a field element and return it.

    Raises:
        FieldElementError: If ``value`` is not an int in ``[0, FIELD_MODULUS)``
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise FieldElementError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value < FIELD_MODULUS:
        raise FieldElementError(f"{name} is outside the BN254 scalar field: {value}")
    return value


def poseidon_hash(inputs: Iterable[int]) -> int:
    """
    Hash an ordered sequence of field elements to a single field element.

    Args:
        inputs: Between 1 and 16 field elements

    Returns:
        The Poseidon digest as an int

    Raises:
        FieldElementError: If an input is out of range or the input count
            is unsupported

    Example:
        >>> poseidon_hash([1, 2])
        7853200120776062878684798364095072458815029376092732009249414926327459813530
    """
    elements: List[int] = list(inputs)
    if not 1 <= len(elements) <= MAX_INPUTS:
        raise FieldElementError(
            f"Poseidon accepts 1 to {MAX_INPUTS} inputs, got {len(elements)}"
        )
    for i, element in enumerate(elements):
        check_field_element(element, f"input[{i}]")

    return _poseidon.hash(len(elements), elements)


def hash_pair(left: int, right: int) -> int:
    """Compress two child commitments into their parent commitment."""
    return poseidon_hash([left, right])
