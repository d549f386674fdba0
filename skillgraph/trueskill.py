"""
An implementation of the TrueSkill rating system on an explicit factor graph
https://www.microsoft.com/en-us/research/project/trueskill-ranking-system/
https://www.moserware.com/assets/computing-your-skill/The%20Math%20Behind%20TrueSkill.pdf

Every call to rate builds a fresh graph for the match:

    rating layer      PriorFactor per player (skill, widened by tau)
    perf layer        LikelihoodFactor per player (performance = skill + noise of variance beta^2)
    team perf layer   SumFactor per team (weighted sum of player performances)
    team diff layer   SumFactor per pair of adjacent teams (difference of team performances)
    trunc layer       TruncateFactor per pair of adjacent teams (observed win or draw)

messages are passed down to the team differences, iterated between the last two
layers until the beliefs stop moving, then passed back up to the skills.
"""
import logging
import math
from itertools import chain
from typing import Dict, Hashable, List, Mapping, Optional, Sequence, Tuple
import numpy as np
from scipy.stats import norm
from skillgraph.factorgraph import FactorGraph, LikelihoodFactor, PriorFactor, SumFactor, TruncateFactor
from skillgraph.rating import Rating
from skillgraph.utils.constants import DELTA, DRAW_PROBABILITY, MAX_ITERATIONS, MU
from skillgraph.utils.math_utils import calc_draw_margin, v_draw, v_win, w_draw, w_win
from skillgraph.utils.matrix_utils import rotated_a_matrix, variance_matrix

logger = logging.getLogger(__name__)


def _team_sizes(rating_groups):
    """cumulative end index of each team in the flattened player list"""
    team_sizes = []
    total = 0
    for group in rating_groups:
        total += len(group)
        team_sizes.append(total)
    return team_sizes


class TrueSkill:
    """
    A TrueSkill environment holding the constants of one game.

    Every game has its own design and may need its own constants. For example if 60%
    of matches end in a draw, use TrueSkill(draw_probability=0.60).

    Parameters:
        mu (float): initial mean of ratings
        sigma (float, optional): initial standard deviation of ratings, defaults to mu / 3
        beta (float, optional): performance noise, the skill distance that guarantees about
            a 76% chance of winning, defaults to sigma / 2
        tau (float, optional): dynamics factor added to every prior, defaults to sigma / 100
        draw_probability (float): probability of a draw between two players, in [0, 1)
    """

    def __init__(
        self,
        mu: float = MU,
        sigma: Optional[float] = None,
        beta: Optional[float] = None,
        tau: Optional[float] = None,
        draw_probability: float = DRAW_PROBABILITY,
    ):
        self.mu = mu
        self.sigma = sigma if sigma is not None else mu / 3.0
        self.beta = beta if beta is not None else self.sigma / 2.0
        self.tau = tau if tau is not None else self.sigma / 100.0
        self.draw_probability = draw_probability

        if self.sigma <= 0.0:
            raise ValueError(f'sigma must be greater than 0 (but was {self.sigma})')
        if self.beta <= 0.0:
            raise ValueError(f'beta must be greater than 0 (but was {self.beta})')
        if self.tau < 0.0:
            raise ValueError(f'tau must not be negative (but was {self.tau})')
        if not 0.0 <= self.draw_probability < 1.0:
            raise ValueError(f'draw_probability must be in [0, 1) (but was {self.draw_probability})')

    def create_rating(self, mu: Optional[float] = None, sigma: Optional[float] = None) -> Rating:
        """a new Rating with this environment's defaults"""
        if mu is None:
            mu = self.mu
        if sigma is None:
            sigma = self.sigma
        return Rating(mu, sigma)

    def expose(self, rating: Rating) -> float:
        """
        Conservative skill estimate to use as a leaderboard sort key. It starts at 0 for a
        new rating and converges to the mean as sigma shrinks.
        """
        k = self.mu / self.sigma
        return rating.mu - k * rating.sigma

    def win_probability(self, team_a: Sequence[Rating], team_b: Sequence[Rating]) -> float:
        """probability that team_a beats team_b"""
        delta_mu = sum(r.mu for r in team_a) - sum(r.mu for r in team_b)
        sum_sigma2 = sum(r.sigma**2.0 for r in chain(team_a, team_b))
        player_count = len(team_a) + len(team_b)
        denom = math.sqrt(player_count * (self.beta**2.0) + sum_sigma2)
        return float(norm.cdf(delta_mu / denom))

    def validate_rating_groups(self, rating_groups: Sequence[Sequence[Rating]]) -> List[List[Rating]]:
        """at least 2 groups, none of them empty"""
        if len(rating_groups) < 2:
            raise ValueError('need multiple rating groups')
        groups = []
        for group in rating_groups:
            if isinstance(group, Rating):
                raise ValueError('a Rating cannot be a rating group')
            if len(group) == 0:
                raise ValueError('each group must contain at least one rating')
            groups.append(list(group))
        return groups

    def validate_weights(self, rating_groups: List[List[Rating]], weights: Optional[Sequence[Sequence[float]]]):
        """one weight per player, all 1 by default"""
        if weights is None:
            return [[1.0] * len(group) for group in rating_groups]
        if len(weights) != len(rating_groups):
            raise ValueError(f'got weights for {len(weights)} groups but there are {len(rating_groups)}')
        validated = []
        for group, group_weights in zip(rating_groups, weights):
            if len(group_weights) != len(group):
                raise ValueError(f'got {len(group_weights)} weights for a group of {len(group)}')
            validated.append([float(w) for w in group_weights])
        return validated

    def rate(
        self,
        rating_groups: Sequence[Sequence[Rating]],
        ranks: Optional[Sequence[float]] = None,
        weights: Optional[Sequence[Sequence[float]]] = None,
        min_delta: float = DELTA,
    ) -> List[List[Rating]]:
        """
        Recalculates ratings from the ranking table. Lower rank is better, equal ranks are a draw.

        Parameters:
            rating_groups: the teams, each a sequence of Ratings
            ranks (optional): rank of each team, defaults to the order of rating_groups
            weights (optional): partial play weight of each player, in the shape of rating_groups
            min_delta (float): stop iterating once no belief moves more than this

        Returns:
            list of lists of Ratings in the shape of rating_groups
        """
        groups = self.validate_rating_groups(rating_groups)
        weights = self.validate_weights(groups, weights)
        group_size = len(groups)
        if ranks is None:
            ranks = list(range(group_size))
        elif len(ranks) != group_size:
            raise ValueError(f'got {len(ranks)} ranks for {group_size} rating groups')
        if min_delta <= 0.0:
            raise ValueError(f'min_delta must be greater than 0 (but was {min_delta})')

        # sort rating groups by rank, stable for equal ranks
        sorting = sorted(enumerate(zip(groups, ranks, weights)), key=lambda x: x[1][1])
        sorted_groups = [g for _, (g, _, _) in sorting]
        sorted_ranks = [r for _, (_, r, _) in sorting]
        # make weights greater than 0
        sorted_weights = [[max(min_delta, w) for w in ws] for _, (_, _, ws) in sorting]

        rating_vars = self.run_schedule(sorted_groups, sorted_ranks, sorted_weights, min_delta)

        transformed_groups = []
        start = 0
        for end in _team_sizes(sorted_groups):
            transformed_groups.append([Rating(var.mu, var.sigma) for var in rating_vars[start:end]])
            start = end
        unsorted = sorted(zip((x for x, _ in sorting), transformed_groups), key=lambda x: x[0])
        return [group for _, group in unsorted]

    def rate_keyed(
        self,
        rating_groups: Sequence[Mapping[Hashable, Rating]],
        ranks: Optional[Sequence[float]] = None,
        weights: Optional[Sequence[Mapping[Hashable, float]]] = None,
        min_delta: float = DELTA,
    ) -> List[Dict[Hashable, Rating]]:
        """rate with teams given as mappings from competitor key to Rating, keys are kept in the output"""
        keys, groups = self._split_keyed(rating_groups)
        positional_weights = self._keyed_weights(keys, weights)
        rated = self.rate(groups, ranks=ranks, weights=positional_weights, min_delta=min_delta)
        return [dict(zip(group_keys, group)) for group_keys, group in zip(keys, rated)]

    def rate_1vs1(self, rating1: Rating, rating2: Rating, drawn: bool = False, min_delta: float = DELTA) -> Tuple[Rating, Rating]:
        """rate a head to head match, rating1 is the winner unless drawn"""
        ranks = [0, 0 if drawn else 1]
        teams = self.rate([[rating1], [rating2]], ranks, min_delta=min_delta)
        return teams[0][0], teams[1][0]

    def quality(
        self,
        rating_groups: Sequence[Sequence[Rating]],
        weights: Optional[Sequence[Sequence[float]]] = None,
    ) -> float:
        """
        Match quality of the given rating groups, the probability of a draw under the
        current beliefs. Use it as a fairness score, e.g. a value below 0.50 suggests
        the match is not so fair.
        """
        groups = self.validate_rating_groups(rating_groups)
        weights = self.validate_weights(groups, weights)
        flatten_ratings = list(chain.from_iterable(groups))
        flatten_weights = list(chain.from_iterable(weights))

        # a vector of all of the skill means
        mean_matrix = np.array([[r.mu] for r in flatten_ratings], dtype=np.float64)
        var_matrix = variance_matrix(flatten_ratings)
        rotated_a = rotated_a_matrix(groups, flatten_weights)
        a_matrix = rotated_a.T

        # match quality further derivation
        ata = ((self.beta**2.0) * rotated_a) @ a_matrix
        atsa = rotated_a @ var_matrix @ a_matrix
        start = mean_matrix.T @ a_matrix
        middle = ata + atsa
        end = rotated_a @ mean_matrix

        e_arg = np.linalg.det(-0.5 * start @ np.linalg.inv(middle) @ end)
        s_arg = np.linalg.det(ata) / np.linalg.det(middle)
        return math.exp(e_arg) * math.sqrt(s_arg)

    def quality_keyed(
        self,
        rating_groups: Sequence[Mapping[Hashable, Rating]],
        weights: Optional[Sequence[Mapping[Hashable, float]]] = None,
    ) -> float:
        keys, groups = self._split_keyed(rating_groups)
        return self.quality(groups, weights=self._keyed_weights(keys, weights))

    def quality_1vs1(self, rating1: Rating, rating2: Rating) -> float:
        return self.quality([[rating1], [rating2]])

    @staticmethod
    def _split_keyed(rating_groups):
        if len(rating_groups) < 2:
            raise ValueError('need multiple rating groups')
        keys, groups = [], []
        for group in rating_groups:
            if isinstance(group, Rating):
                raise ValueError('a Rating cannot be a rating group')
            keys.append(list(group.keys()))
            groups.append(list(group.values()))
        return keys, groups

    @staticmethod
    def _keyed_weights(keys, weights):
        if weights is None:
            return None
        if len(weights) != len(keys):
            raise ValueError(f'got weights for {len(weights)} groups but there are {len(keys)}')
        return [[group_weights.get(key, 1.0) for key in group_keys] for group_keys, group_weights in zip(keys, weights)]

    def build_rating_layer(self, graph, rating_vars, flatten_ratings):
        return [PriorFactor(graph, var, rating, self.tau) for var, rating in zip(rating_vars, flatten_ratings)]

    def build_perf_layer(self, graph, rating_vars, perf_vars):
        return [LikelihoodFactor(graph, r_var, p_var, self.beta**2.0) for r_var, p_var in zip(rating_vars, perf_vars)]

    def build_team_perf_layer(self, graph, team_perf_vars, perf_vars, team_sizes, flatten_weights):
        factors = []
        start = 0
        for team_perf_var, end in zip(team_perf_vars, team_sizes):
            factors.append(SumFactor(graph, team_perf_var, perf_vars[start:end], flatten_weights[start:end]))
            start = end
        return factors

    def build_team_diff_layer(self, graph, team_diff_vars, team_perf_vars):
        return [
            SumFactor(graph, team_diff_var, team_perf_vars[team : team + 2], [1.0, -1.0])
            for team, team_diff_var in enumerate(team_diff_vars)
        ]

    def build_trunc_layer(self, graph, team_diff_vars, sorted_groups, sorted_ranks):
        factors = []
        for x, team_diff_var in enumerate(team_diff_vars):
            size = len(sorted_groups[x]) + len(sorted_groups[x + 1])
            draw_margin = calc_draw_margin(self.draw_probability, size, self.beta)
            if sorted_ranks[x] == sorted_ranks[x + 1]:
                v_func, w_func = v_draw, w_draw
            else:
                v_func, w_func = v_win, w_win
            factors.append(TruncateFactor(graph, team_diff_var, v_func, w_func, draw_margin))
        return factors

    def run_schedule(self, sorted_groups, sorted_ranks, sorted_weights, min_delta=DELTA):
        """
        Builds the factor graph for a match sorted by rank and passes messages through it
        until the result is reliable.

        Returns:
            the rating variables, allocated first in the graph, holding the updated skills in flattened order
        """
        if min_delta <= 0.0:
            raise ValueError(f'min_delta must be greater than 0 (but was {min_delta})')
        flatten_ratings = list(chain.from_iterable(sorted_groups))
        flatten_weights = list(chain.from_iterable(sorted_weights))
        size = len(flatten_ratings)
        group_size = len(sorted_groups)
        logger.debug('building factor graph for %d players in %d teams', size, group_size)

        graph = FactorGraph()
        rating_vars = graph.new_variables(size)
        perf_vars = graph.new_variables(size)
        team_perf_vars = graph.new_variables(group_size)
        team_diff_vars = graph.new_variables(group_size - 1)
        team_sizes = _team_sizes(sorted_groups)

        rating_layer = self.build_rating_layer(graph, rating_vars, flatten_ratings)
        perf_layer = self.build_perf_layer(graph, rating_vars, perf_vars)
        team_perf_layer = self.build_team_perf_layer(graph, team_perf_vars, perf_vars, team_sizes, flatten_weights)
        for f in rating_layer:
            f.down()
        for f in perf_layer:
            f.down()
        for f in team_perf_layer:
            f.down()

        team_diff_layer = self.build_team_diff_layer(graph, team_diff_vars, team_perf_vars)
        trunc_layer = self.build_trunc_layer(graph, team_diff_vars, sorted_groups, sorted_ranks)
        team_diff_len = len(team_diff_layer)
        converged = False
        for iteration in range(MAX_ITERATIONS):
            if team_diff_len == 1:
                # only two teams
                team_diff_layer[0].down()
                delta = trunc_layer[0].up()
            else:
                delta = 0.0
                for x in range(team_diff_len - 1):
                    team_diff_layer[x].down()
                    delta = max(delta, trunc_layer[x].up())
                    team_diff_layer[x].up(1)
                for x in range(team_diff_len - 1, 0, -1):
                    team_diff_layer[x].down()
                    delta = max(delta, trunc_layer[x].up())
                    team_diff_layer[x].up(0)
            logger.debug('iteration %d: delta=%.6g', iteration, delta)
            if delta <= min_delta:
                converged = True
                break
        if not converged:
            logger.debug('schedule stopped after %d iterations without reaching min_delta=%g', MAX_ITERATIONS, min_delta)

        # up both ends
        team_diff_layer[0].up(0)
        team_diff_layer[team_diff_len - 1].up(1)
        # up the remainder
        for f in team_perf_layer:
            for x in range(len(f.vars) - 1):
                f.up(x)
        for f in perf_layer:
            f.up()
        return graph.variables[:size]

    def __repr__(self):
        return (
            f'TrueSkill(mu={self.mu:.3f}, sigma={self.sigma:.3f}, beta={self.beta:.3f}, '
            f'tau={self.tau:.3f}, draw_probability={self.draw_probability:.1%})'
        )


def _env(env: Optional[TrueSkill]) -> TrueSkill:
    return env if env is not None else TrueSkill()


def rate(rating_groups, ranks=None, weights=None, min_delta=DELTA, env: Optional[TrueSkill] = None):
    """TrueSkill.rate on env, or on a default environment"""
    return _env(env).rate(rating_groups, ranks, weights, min_delta)


def rate_keyed(rating_groups, ranks=None, weights=None, min_delta=DELTA, env: Optional[TrueSkill] = None):
    return _env(env).rate_keyed(rating_groups, ranks, weights, min_delta)


def rate_1vs1(rating1, rating2, drawn=False, min_delta=DELTA, env: Optional[TrueSkill] = None):
    """a shortcut to rate just 2 players in a head to head match"""
    return _env(env).rate_1vs1(rating1, rating2, drawn, min_delta)


def quality(rating_groups, weights=None, env: Optional[TrueSkill] = None):
    """TrueSkill.quality on env, or on a default environment"""
    return _env(env).quality(rating_groups, weights)


def quality_keyed(rating_groups, weights=None, env: Optional[TrueSkill] = None):
    return _env(env).quality_keyed(rating_groups, weights)


def quality_1vs1(rating1, rating2, env: Optional[TrueSkill] = None):
    """a shortcut to calculate the match quality between 2 players"""
    return _env(env).quality_1vs1(rating1, rating2)


def win_probability(team_a, team_b, env: Optional[TrueSkill] = None):
    return _env(env).win_probability(team_a, team_b)


def expose(rating, env: Optional[TrueSkill] = None):
    return _env(env).expose(rating)
