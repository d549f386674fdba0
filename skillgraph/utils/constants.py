"""default constants for the trueskill environment, computed once here"""
import math

# rating defaults
MU = 25.0
SIGMA = MU / 3.0
BETA = SIGMA / 2.0  # distance that guarantees about a 76% chance of winning
TAU = SIGMA / 100.0  # dynamics factor, skill drift between matches
DRAW_PROBABILITY = 0.10

# schedule constants
DELTA = 0.0001  # convergence threshold for the message passing loop
MAX_ITERATIONS = 10

# general math constants
INF = float('inf')
SQRT2 = math.sqrt(2.0)
