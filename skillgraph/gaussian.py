"""
Gaussian distributions in natural parameters

Beliefs and messages in the factor graph are stored as precision (pi = 1 / sigma^2)
and precision adjusted mean (tau = pi * mu). Multiplying or dividing two gaussian
densities then reduces to adding or subtracting these two numbers.
"""
import math
from skillgraph.utils.constants import INF


class Gaussian:
    """A normal distribution stored as (pi, tau). Gaussian() is the flat belief with pi = tau = 0."""

    def __init__(self, mu=None, sigma=None, pi=0.0, tau=0.0):
        if mu is not None:
            if sigma is None:
                raise TypeError('sigma argument is needed')
            if sigma <= 0.0:
                raise ValueError(f'sigma should be greater than 0 (but was {sigma})')
            pi = sigma**-2.0
            tau = pi * mu
        self.pi = pi
        self.tau = tau

    @property
    def mu(self):
        """the mean, 0 for a flat belief"""
        if self.pi == 0.0:
            return 0.0
        return self.tau / self.pi

    @property
    def sigma(self):
        """the standard deviation, infinite for a flat belief"""
        if self.pi == 0.0:
            return INF
        return math.sqrt(1.0 / self.pi)

    def __mul__(self, other):
        return Gaussian(pi=self.pi + other.pi, tau=self.tau + other.tau)

    def __truediv__(self, other):
        return Gaussian(pi=self.pi - other.pi, tau=self.tau - other.tau)

    def __eq__(self, other):
        if not isinstance(other, Gaussian):
            return NotImplemented
        return self.pi == other.pi and self.tau == other.tau

    def __hash__(self):
        return hash((self.pi, self.tau))

    def __lt__(self, other):
        return self.mu < other.mu

    def __le__(self, other):
        return self.mu <= other.mu

    def __gt__(self, other):
        return self.mu > other.mu

    def __ge__(self, other):
        return self.mu >= other.mu

    def __repr__(self):
        return f'N(mu={self.mu:.3f}, sigma={self.sigma:.3f})'
