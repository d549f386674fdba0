import math
import pytest
from skillgraph.utils.math_utils import calc_draw_margin, norm_cdf, norm_pdf, v_draw, v_win, w_draw, w_win


def test_norm_helpers():
    assert norm_cdf(0.0) == pytest.approx(0.5)
    assert norm_pdf(0.0) == pytest.approx(1.0 / math.sqrt(2.0 * math.pi))
    assert norm_cdf(-10.0) > 0.0


def test_draw_margin():
    assert calc_draw_margin(0.0, 2, 4.0) == pytest.approx(0.0)
    beta = 25.0 / 6.0
    margin = calc_draw_margin(0.1, 2, beta)
    # the draw probability of two equal players is recovered from the margin
    c = math.sqrt(2.0) * beta
    assert norm_cdf(margin / c) - norm_cdf(-margin / c) == pytest.approx(0.1)
    assert calc_draw_margin(0.1, 4, beta) == pytest.approx(margin * math.sqrt(2.0))


def test_v_win_deep_tail_falls_back_to_asymptote():
    assert v_win(-40.0, 0.0) == pytest.approx(40.0)


def test_w_win_in_unit_interval():
    for diff in [-3.0, -0.5, 0.0, 0.5, 3.0]:
        assert 0.0 < w_win(diff, 0.5) < 1.0


def test_w_win_raises_when_out_of_range():
    with pytest.raises(FloatingPointError):
        w_win(40.0, 0.0)


def test_v_draw_is_odd():
    assert v_draw(0.0, 0.5) == 0.0
    assert v_draw(-1.0, 0.5) == pytest.approx(-v_draw(1.0, 0.5))
    # a draw pulls a large difference back towards zero
    assert v_draw(2.0, 0.5) < 0.0


def test_w_draw_in_unit_interval():
    for diff in [-2.0, 0.0, 0.3, 2.0]:
        assert 0.0 < w_draw(diff, 0.5) < 1.0


def test_w_draw_raises_without_margin():
    with pytest.raises(FloatingPointError):
        w_draw(0.0, 0.0)


def test_w_win_far_left_tail_stays_in_unit_interval():
    # norm_cdf(-30) is about 4.9e-198, small but still usable as a denominator
    assert v_win(-20.0, 10.0) == pytest.approx(30.033, abs=1e-3)
    assert 0.0 < w_win(-20.0, 10.0) < 1.0
    assert w_win(-20.0, 10.0) == pytest.approx(1.0 - 1.0 / 30.0**2, abs=1e-4)


@pytest.mark.parametrize('diff,draw_margin', [(0.0, 50.0), (10.0, 1e-9)])
def test_w_draw_raises_when_out_of_range(diff, draw_margin):
    with pytest.raises(FloatingPointError, match='out of range'):
        w_draw(diff, draw_margin)
