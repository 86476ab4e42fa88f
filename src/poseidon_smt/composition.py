"""
Multi-level tree composition.

A large deterministic tree is split into ``2 ** h_level`` independent
branches of ``2 ** l_level`` leaves each. Branches share no state, so they
are built on separate worker processes; their roots are then combined with
one more dense Merkle tree.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional, Sequence, Tuple

from tqdm import tqdm

from poseidon_smt.dense import MerkleTree, new_deterministic_merkle_tree
from poseidon_smt.exceptions import TreeSizeError

logger = logging.getLogger(__name__)


def branch_root(l_level: int, start_index: int) -> int:
    """Root of one deterministic branch starting at ``start_index``."""
    return new_deterministic_merkle_tree(l_level, start_index).root


def branch_start_indices(h_level: int, l_level: int, pre_image: int = 0) -> List[int]:
    """First leaf index of each branch: ``(i + pre_image) * 2 ** l_level``."""
    for name, value in (("h_level", h_level), ("l_level", l_level), ("pre_image", pre_image)):
        if value < 0:
            raise TreeSizeError(f"{name} must be non-negative, got {value}")
    increment = 1 << l_level
    return [(i + pre_image) * increment for i in range(1 << h_level)]


def compute_branch_roots(
    h_level: int,
    l_level: int,
    pre_image: int = 0,
    workers: Optional[int] = None,
    progress: bool = False,
) -> List[int]:
    """
    Compute the root of every branch, in branch order.

    Args:
        h_level: Height of the top tree; there are ``2 ** h_level`` branches
        l_level: Height of each branch tree
        pre_image: Branch offset added before scaling to leaf indices
        workers: Worker processes; ``1`` builds in the calling process and
            ``None`` lets the executor choose
        progress: Show a tqdm progress bar of completed branches

    Returns:
        List of branch roots, index ``i`` for branch ``i``

    Raises:
        TreeSizeError: If any level or offset is negative, or ``workers``
            is below 1
    """
    if workers is not None and workers < 1:
        raise TreeSizeError(f"workers must be at least 1, got {workers}")
    starts = branch_start_indices(h_level, l_level, pre_image)
    logger.info("Building %d branches of %d leaves", len(starts), 1 << l_level)

    with tqdm(total=len(starts), disable=not progress, unit="branch") as bar:
        if workers == 1:
            roots = []
            for start in starts:
                roots.append(branch_root(l_level, start))
                bar.update(1)
            return roots

        with ProcessPoolExecutor(max_workers=workers) as executor:
            roots = []
            for root in executor.map(branch_root, [l_level] * len(starts), starts):
                roots.append(root)
                bar.update(1)
            return roots


def combine_roots(roots: Sequence[int]) -> int:
    """Merkle-combine branch roots into a single root."""
    return MerkleTree.from_leaves(roots).root


def build_multilevel_root(
    h_level: int,
    l_level: int,
    pre_image: int = 0,
    workers: Optional[int] = None,
    progress: bool = False,
) -> Tuple[int, List[int]]:
    """Return ``(root, branch_roots)`` for the composed tree."""
    branches = compute_branch_roots(h_level, l_level, pre_image, workers, progress)
    root = combine_roots(branches)
    logger.info("Combined %d branch roots into %d", len(branches), root)
    return root, branches
