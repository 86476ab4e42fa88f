"""
Custom exception hierarchy for poseidon_smt.

These exceptions provide more specific error handling for the different
ways a tree operation can be rejected. Every failure is a deterministic
function of bad input, so none of them are worth retrying.
"""


class SMTError(Exception):
    """Base exception for all poseidon_smt errors."""
    pass


class InvalidKeyError(SMTError, ValueError):
    """
    Raised when a key cannot address a leaf of the tree.

    This indicates:
    - Key length differs from the tree depth
    - Key contains characters other than '0' and '1'
    - Key is not a string at all
    """
    pass


class KeyNotFoundError(SMTError, KeyError):
    """
    Raised when a Merkle path is requested for a key that was never inserted.

    Only explicitly inserted keys are provable. Callers can recover by
    inserting the key first.
    """
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"no leaf exists at key: {self.key!r}"


class FieldElementError(SMTError, ValueError):
    """
    Raised when a value is not a valid BN254 field element.

    This indicates:
    - Value is not an integer
    - Value is negative or not below the field modulus
    - Unsupported number of hash inputs
    """
    pass


class TreeSizeError(SMTError, ValueError):
    """
    Raised when a tree shape precondition is violated.

    This indicates:
    - Tree depth below 1
    - Leaf count that is zero or not a power of two
    - Negative branch or level sizes
    """
    pass


class SerializationError(SMTError):
    """
    Raised when encoded proof data cannot be decoded.

    This indicates:
    - Invalid hex strings
    - Missing fields in a JSON proof document
    - Corrupted CBOR data
    """
    pass
