"""base class for online rating systems"""
from abc import ABC
from typing import Optional
import numpy as np
from skillgraph.utils.data_utils import MatchupDataset


class OnlineRatingSystem(ABC):
    """
    Base class for online rating systems, which update competitor ratings one rating
    period at a time as results come in.

    Attributes:
        rating_dim (int): Dimension of competitor ratings, 2 for systems like TrueSkill that
                          track a mean and a standard deviation.
        competitors (list): A list of competitors within the rating system.
        num_competitors (int): The number of competitors in the system.
    """

    rating_dim: int

    def __init__(self, competitors):
        self.competitors = competitors
        self.num_competitors = len(competitors)

    def print_leaderboard(self, num_places=None):
        """
        Prints the leaderboard of the rating system.

        Parameters:
            num_places int: The number of top places to display on the leaderboard.
        """
        raise NotImplementedError

    def predict(self, matchups: np.ndarray, time_step: int = None, set_cache: bool = False):
        """
        Probability that the first competitor of each matchup beats the second.

        Parameters:
            matchups (np.ndarray of shape (n,2)): competitor indices
            time_step (optional int)
            set_cache (bool): keep intermediate values for a following update(use_cache=True)
        """
        raise NotImplementedError

    def update(self, matchups: np.ndarray, outcomes: np.ndarray, time_step: Optional[int], use_cache: bool = False):
        """
        Updates ratings based on the results of one rating period. Subclasses bind this to
        either batched_update or iterative_update.

        Parameters:
            matchups (np.ndarray): Array of matchups, where each matchup is represented by a pair of competitor indices
            outcomes (np.ndarray): Array of outcomes for the first competitor, win (1), loss (0), or draw (0.5).
            time_step (int): The current rating period.
            use_cache (bool, optional): Whether to reuse values cached during a prior call to predict().
        """
        raise NotImplementedError

    def batched_update(self, matchups: np.ndarray, outcomes: np.ndarray, time_step: int, use_cache=False, **kwargs):
        """treats all matchups of the rating period as simultaneous, every one rated from the period-start ratings"""
        raise NotImplementedError

    def iterative_update(self, matchups: np.ndarray, outcomes: np.ndarray, time_step: int, use_cache=False, **kwargs):
        """treats the matchups of the rating period as sequential"""
        raise NotImplementedError

    def get_pre_match_ratings(self, matchups: np.ndarray, time_step: Optional[int] = None) -> np.ndarray:
        """
        Returns the ratings of the competitors of each matchup before it is played.
        Useful as features in downstream ML pipelines.

        Returns:
            np.ndarray of shape (n, 2 * rating_dim)
        """
        raise NotImplementedError

    def fit_batch(
        self,
        matchups: np.ndarray,
        outcomes: np.ndarray,
        time_step: int = None,
        return_pre_match_probs: bool = False,
        return_pre_match_ratings: bool = False,
        cache: bool = False,
    ):
        pre_match_probs = None
        pre_match_ratings = None
        if return_pre_match_probs:
            pre_match_probs = self.predict(matchups=matchups, time_step=time_step, set_cache=cache)
        if return_pre_match_ratings:
            pre_match_ratings = self.get_pre_match_ratings(matchups, time_step=time_step)
        self.update(matchups, outcomes, time_step=time_step, use_cache=cache)
        return pre_match_probs, pre_match_ratings

    def fit_dataset(
        self,
        dataset: MatchupDataset,
        return_pre_match_probs: bool = False,
        return_pre_match_ratings: bool = False,
        cache: bool = False,
    ):
        """fit a rating system on a dataset, one rating period at a time"""
        n_matchups = len(dataset)
        pre_match_probs = np.empty(shape=(n_matchups)) if return_pre_match_probs else None
        pre_match_ratings = np.empty(shape=(n_matchups, 2 * self.rating_dim)) if return_pre_match_ratings else None

        idx = 0
        for matchups, outcomes, time_step in dataset:
            batch_probs, batch_ratings = self.fit_batch(
                matchups=matchups,
                outcomes=outcomes,
                time_step=time_step,
                return_pre_match_probs=return_pre_match_probs,
                return_pre_match_ratings=return_pre_match_ratings,
                cache=cache,
            )
            end_idx = idx + matchups.shape[0]
            if return_pre_match_probs:
                pre_match_probs[idx:end_idx] = batch_probs
            if return_pre_match_ratings:
                pre_match_ratings[idx:end_idx] = batch_ratings
            idx = end_idx

        if return_pre_match_probs and return_pre_match_ratings:
            return pre_match_probs, pre_match_ratings
        if return_pre_match_probs:
            return pre_match_probs
        if return_pre_match_ratings:
            return pre_match_ratings
        return None
