"""the rating object handed to and returned from the environment"""
from skillgraph.gaussian import Gaussian
from skillgraph.utils.constants import MU


class Rating(Gaussian):
    """
    A player's skill as a gaussian belief, read through mu and sigma.

    Parameters:
        mu (float | tuple | Gaussian): the mean, a (mu, sigma) pair or another gaussian to copy
        sigma (float, optional): the standard deviation, defaults to mu / 3

    Use TrueSkill.create_rating to get the defaults of a specific environment.
    """

    def __init__(self, mu=MU, sigma=None):
        if isinstance(mu, tuple):
            mu, sigma = mu
        elif isinstance(mu, Gaussian):
            mu, sigma = mu.mu, mu.sigma
        if sigma is None:
            sigma = mu / 3.0
        super().__init__(mu, sigma)

    def __iter__(self):
        return iter((self.mu, self.sigma))

    def __repr__(self):
        return f'Rating(mu={self.mu:.3f}, sigma={self.sigma:.3f})'
