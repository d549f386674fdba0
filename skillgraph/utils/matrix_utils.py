"""matrices for the closed form match quality"""
from typing import List, Sequence
import numpy as np


def variance_matrix(flatten_ratings: Sequence) -> np.ndarray:
    """diagonal matrix of the individual skill variances"""
    return np.diag(np.array([rating.sigma**2.0 for rating in flatten_ratings], dtype=np.float64))


def rotated_a_matrix(rating_groups: List[Sequence], flatten_weights: Sequence[float]) -> np.ndarray:
    """
    One row per pair of adjacent teams with +weight under the columns of the first
    team's players and -weight under the columns of the second team's players.

    Parameters:
        rating_groups: the teams, in order
        flatten_weights: one weight per player, in the same flattened order

    Returns:
        np.ndarray of shape (num_teams - 1, num_players)
    """
    num_players = len(flatten_weights)
    weights = np.asarray(flatten_weights, dtype=np.float64)
    matrix = np.zeros(shape=(len(rating_groups) - 1, num_players), dtype=np.float64)
    start = 0
    for row in range(len(rating_groups) - 1):
        mid = start + len(rating_groups[row])
        end = mid + len(rating_groups[row + 1])
        matrix[row, start:mid] = weights[start:mid]
        matrix[row, mid:end] = -weights[mid:end]
        start = mid
    return matrix
