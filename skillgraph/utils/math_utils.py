"""math utility functions for the truncation step of the factor graph"""
import math
import statistics
from scipy.stats import norm
from skillgraph.utils.constants import SQRT2

STANDARD_NORMAL = statistics.NormalDist()


def norm_cdf(x):
    """cdf of standard normal, erfc keeps precision deep in the left tail"""
    return 0.5 * math.erfc(-x / SQRT2)


def norm_pdf(x):
    """pdf of standard normal"""
    return STANDARD_NORMAL.pdf(x)


def calc_draw_margin(draw_probability, size, beta):
    """the performance difference below which a match is considered a draw"""
    return norm.ppf((draw_probability + 1.0) / 2.0) * math.sqrt(size) * beta


def v_win(diff, draw_margin):
    """additive correction of the mean for a win"""
    x = diff - draw_margin
    denom = norm_cdf(x)
    if denom:
        return norm_pdf(x) / denom
    return -x


def v_draw(diff, draw_margin):
    """additive correction of the mean for a draw"""
    abs_diff = math.fabs(diff)  # the papers do NOT do this but ALL open source implementations DO...
    a = draw_margin - abs_diff
    b = -draw_margin - abs_diff
    denom = norm_cdf(a) - norm_cdf(b)
    numer = norm_pdf(b) - norm_pdf(a)
    v = (numer / denom) if denom else a
    return -v if diff < 0 else v


def w_win(diff, draw_margin):
    """multiplicative correction of the variance for a win"""
    x = diff - draw_margin
    v = v_win(diff, draw_margin)
    w = v * (v + x)
    if 0.0 < w < 1.0:
        return w
    raise FloatingPointError(f'w_win out of range: w={w} for diff={diff}, draw_margin={draw_margin}')


def w_draw(diff, draw_margin):
    """multiplicative correction of the variance for a draw"""
    abs_diff = math.fabs(diff)
    a = draw_margin - abs_diff
    b = -draw_margin - abs_diff
    denom = norm_cdf(a) - norm_cdf(b)
    if not denom:
        raise FloatingPointError(f'w_draw denominator vanished for diff={diff}, draw_margin={draw_margin}')
    v = v_draw(abs_diff, draw_margin)
    w = (v**2.0) + (a * norm_pdf(a) - b * norm_pdf(b)) / denom
    if 0.0 < w < 1.0:
        return w
    raise FloatingPointError(f'w_draw out of range: w={w} for diff={diff}, draw_margin={draw_margin}')
