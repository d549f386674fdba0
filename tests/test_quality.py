import math
import numpy as np
import pytest
from skillgraph import Rating, TrueSkill, quality, quality_1vs1, quality_keyed
from skillgraph.utils.matrix_utils import rotated_a_matrix, variance_matrix


def test_variance_matrix():
    matrix = variance_matrix([Rating(25.0, 2.0), Rating(25.0, 3.0)])
    np.testing.assert_allclose(matrix, np.array([[4.0, 0.0], [0.0, 9.0]]))


def test_rotated_a_matrix():
    groups = [[Rating()], [Rating(), Rating()], [Rating()]]
    matrix = rotated_a_matrix(groups, [1.0, 0.5, 1.0, 2.0])
    expected = np.array(
        [
            [1.0, -0.5, -1.0, 0.0],
            [0.0, 0.5, 1.0, -2.0],
        ]
    )
    np.testing.assert_allclose(matrix, expected)


def test_1vs1_quality():
    assert quality_1vs1(Rating(), Rating()) == pytest.approx(0.447, abs=1e-3)
    assert quality_1vs1(Rating(), Rating()) == pytest.approx(math.sqrt(0.2))


def test_team_size_does_not_matter_for_equal_teams():
    assert quality([[Rating(), Rating()], [Rating(), Rating()]]) == pytest.approx(math.sqrt(0.2))


@pytest.mark.parametrize('size,expected', [(2, 0.135), (3, 0.012)])
def test_1_vs_n(size, expected):
    groups = [[Rating()], [Rating() for _ in range(size)]]
    assert quality(groups) == pytest.approx(expected, abs=1e-3)


def test_quality_trends_to_zero():
    assert quality([[Rating()], [Rating() for _ in range(7)]]) < 1e-3
    assert quality_1vs1(Rating(100.0, 1.0), Rating(0.0, 1.0)) < 1e-6


def test_individuals():
    assert quality([[Rating()] for _ in range(3)]) == pytest.approx(0.200, abs=1e-3)


def test_quality_in_unit_interval():
    groups = [[Rating(30.0, 2.0), Rating(20.0, 6.0)], [Rating(24.0, 1.0)], [Rating(27.0, 5.0), Rating()]]
    q = quality(groups)
    assert 0.0 < q <= 1.0


def test_unit_weights_change_nothing():
    groups = [[Rating(30.0, 2.0)], [Rating(), Rating()]]
    assert quality(groups, weights=[[1.0], [1.0, 1.0]]) == pytest.approx(quality(groups))


def test_quality_keyed():
    keyed = [{'alice': Rating()}, {'bob': Rating(), 'carol': Rating()}]
    assert quality_keyed(keyed) == pytest.approx(quality([[Rating()], [Rating(), Rating()]]))


def test_quality_uses_environment():
    r1, r2 = Rating(25.0, 1.0), Rating(27.0, 1.0)
    assert TrueSkill(beta=10.0).quality_1vs1(r1, r2) > TrueSkill(beta=1.0).quality_1vs1(r1, r2)


def test_quality_validates_groups():
    with pytest.raises(ValueError, match='need multiple rating groups'):
        quality([[Rating()]])
