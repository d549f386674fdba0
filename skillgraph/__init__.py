"""
skillgraph
==========

TrueSkill ratings computed by belief propagation on a gaussian factor graph.

    from skillgraph import TrueSkill

    env = TrueSkill(draw_probability=0.0)
    alice, bob = env.create_rating(), env.create_rating()
    (alice,), (bob,) = env.rate([[alice], [bob]], ranks=[0, 1])
    env.quality_1vs1(alice, bob)

The module level functions take an optional env and fall back to a default TrueSkill().
"""
from skillgraph.gaussian import Gaussian
from skillgraph.rating import Rating
from skillgraph.trueskill import (
    TrueSkill,
    expose,
    quality,
    quality_1vs1,
    quality_keyed,
    rate,
    rate_1vs1,
    rate_keyed,
    win_probability,
)
from skillgraph.utils.constants import BETA, DELTA, DRAW_PROBABILITY, MU, SIGMA, TAU

__version__ = '0.1.0'

__all__ = [
    'Gaussian',
    'Rating',
    'TrueSkill',
    'rate',
    'rate_keyed',
    'rate_1vs1',
    'quality',
    'quality_keyed',
    'quality_1vs1',
    'win_probability',
    'expose',
    'MU',
    'SIGMA',
    'BETA',
    'TAU',
    'DRAW_PROBABILITY',
    'DELTA',
]
