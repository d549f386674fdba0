"""TrueSkill over a dataset of head to head matches, every match rated on its own factor graph"""
import logging
import numpy as np
from skillgraph.core.base import OnlineRatingSystem
from skillgraph.rating import Rating
from skillgraph.trueskill import TrueSkill
from skillgraph.utils.constants import DELTA, DRAW_PROBABILITY, MU

logger = logging.getLogger(__name__)


class FactorGraphTrueSkill(OnlineRatingSystem):
    """the og TrueSkill rating system driven one match at a time through the environment"""

    rating_dim = 2

    def __init__(
        self,
        competitors: list,
        initial_mu: float = MU,
        initial_sigma: float = None,
        beta: float = None,
        tau: float = None,
        draw_probability: float = DRAW_PROBABILITY,
        min_delta: float = DELTA,
        update_method: str = 'iterative',
        dtype=np.float64,
    ):
        super().__init__(competitors)
        self.env = TrueSkill(mu=initial_mu, sigma=initial_sigma, beta=beta, tau=tau, draw_probability=draw_probability)
        self.min_delta = min_delta
        self.mus = np.zeros(shape=self.num_competitors, dtype=dtype) + self.env.mu
        self.sigmas = np.zeros(shape=self.num_competitors, dtype=dtype) + self.env.sigma
        if update_method == 'batched':
            self.update = self.batched_update
        elif update_method == 'iterative':
            self.update = self.iterative_update
        else:
            raise ValueError(f'Invalid update_method {update_method}')

    @property
    def ratings(self):
        return self.mus

    def rating(self, idx) -> Rating:
        return Rating(float(self.mus[idx]), float(self.sigmas[idx]))

    def get_pre_match_ratings(self, matchups: np.ndarray, **kwargs):
        mus = self.mus[matchups]
        sigmas = self.sigmas[matchups]
        return np.concatenate((mus[..., None], sigmas[..., None]), axis=2).reshape(mus.shape[0], -1)

    def predict(self, matchups: np.ndarray, time_step: int = None, set_cache: bool = False):
        """generate predictions"""
        probs = np.empty(shape=matchups.shape[0], dtype=np.float64)
        for idx in range(matchups.shape[0]):
            comp_1, comp_2 = matchups[idx]
            probs[idx] = self.env.win_probability([self.rating(comp_1)], [self.rating(comp_2)])
        return probs

    def rate_matchup(self, rating_1: Rating, rating_2: Rating, outcome: float):
        """updated ratings of both competitors, outcome is from the perspective of the first"""
        if outcome == 0.5:
            return self.env.rate_1vs1(rating_1, rating_2, drawn=True, min_delta=self.min_delta)
        if outcome:
            return self.env.rate_1vs1(rating_1, rating_2, min_delta=self.min_delta)
        new_2, new_1 = self.env.rate_1vs1(rating_2, rating_1, min_delta=self.min_delta)
        return new_1, new_2

    def batched_update(self, matchups, outcomes, time_step=None, use_cache=False, **kwargs):
        """rate every match from the period-start ratings then pool, mean shifts add up and variance reductions average"""
        mu_updates = np.zeros(self.num_competitors, dtype=np.float64)
        sigma2_updates = np.zeros(self.num_competitors, dtype=np.float64)
        counts = np.zeros(self.num_competitors, dtype=np.int64)
        for idx in range(matchups.shape[0]):
            comp_1, comp_2 = matchups[idx]
            new_1, new_2 = self.rate_matchup(self.rating(comp_1), self.rating(comp_2), outcomes[idx])
            for comp, new in ((comp_1, new_1), (comp_2, new_2)):
                mu_updates[comp] += new.mu - self.mus[comp]
                sigma2_updates[comp] += self.sigmas[comp] ** 2.0 - new.sigma**2.0
                counts[comp] += 1

        active = counts > 0
        self.mus[active] += mu_updates[active]
        self.sigmas[active] = np.sqrt(self.sigmas[active] ** 2.0 - sigma2_updates[active] / counts[active])
        logger.debug('batched update of %d matchups in period %s', matchups.shape[0], time_step)

    def iterative_update(self, matchups, outcomes, time_step=None, **kwargs):
        """treat the matchups in the rating period as if they were sequential"""
        for idx in range(matchups.shape[0]):
            comp_1, comp_2 = matchups[idx]
            new_1, new_2 = self.rate_matchup(self.rating(comp_1), self.rating(comp_2), outcomes[idx])
            self.mus[comp_1], self.sigmas[comp_1] = new_1.mu, new_1.sigma
            self.mus[comp_2], self.sigmas[comp_2] = new_2.mu, new_2.sigma
        logger.debug('iterative update of %d matchups in period %s', matchups.shape[0], time_step)

    def print_leaderboard(self, num_places=None):
        if num_places is None:
            num_places = self.num_competitors
        num_places = min(num_places, self.num_competitors)
        sort_array = np.array([self.env.expose(self.rating(idx)) for idx in range(self.num_competitors)])
        sorted_idxs = np.argsort(-sort_array)[:num_places]
        max_len = min(np.max([len(str(comp)) for comp in self.competitors] + [10]), 25)
        print(f'{"competitor": <{max_len}}\t{"exposure"}')
        for comp_idx in sorted_idxs:
            print(f'{str(self.competitors[comp_idx]): <{max_len}}\t{sort_array[comp_idx]:.6f}')
