"""
example from: https://github.com/sublee/trueskill/blob/master/trueskilltest.py
"""
import numpy as np
import pytest
from skillgraph.models import FactorGraphTrueSkill
from skillgraph.utils.data_utils import MatchupDataset


def general_trueskill(update_method, outcomes=(1.0, 0.5)):
    time_steps = np.array([0, 0])
    matchups = np.array([[0, 1], [2, 3]])
    dataset = MatchupDataset.init_from_arrays(
        time_steps=time_steps, matchups=matchups, outcomes=np.array(outcomes), competitors=[0, 1, 2, 3]
    )
    model = FactorGraphTrueSkill(
        competitors=dataset.competitors,
        initial_mu=25.0,
        initial_sigma=25.0 / 3.0,
        beta=25.0 / 6.0,
        draw_probability=0.1,
        update_method=update_method,
    )
    model.fit_dataset(dataset)
    return model


@pytest.mark.parametrize('update_method', ['iterative', 'batched'])
def test_trueskill(update_method):
    model = general_trueskill(update_method)
    assert model.mus[0] == pytest.approx(29.396, abs=1e-3)
    assert model.mus[1] == pytest.approx(20.604, abs=1e-3)
    assert model.sigmas[0] == pytest.approx(7.171, abs=1e-3)
    assert model.sigmas[1] == pytest.approx(7.171, abs=1e-3)

    assert model.mus[2] == pytest.approx(25.0, abs=1e-3)
    assert model.mus[3] == pytest.approx(25.0, abs=1e-3)
    assert model.sigmas[2] == pytest.approx(6.458, abs=1e-3)
    assert model.sigmas[3] == pytest.approx(6.458, abs=1e-3)


def test_loss_mirrors_win():
    model = general_trueskill('iterative', outcomes=(0.0, 0.5))
    assert model.mus[0] == pytest.approx(20.604, abs=1e-3)
    assert model.mus[1] == pytest.approx(29.396, abs=1e-3)


def test_iterative_and_batched_differ_for_shared_competitors():
    matchups = np.array([[0, 1], [0, 2]])
    outcomes = np.array([1.0, 1.0])
    results = {}
    for update_method in ['iterative', 'batched']:
        model = FactorGraphTrueSkill(competitors=[0, 1, 2], update_method=update_method)
        model.update(matchups, outcomes, time_step=0)
        results[update_method] = model.mus.copy()
    assert results['iterative'][0] > 25.0
    assert results['batched'][0] > 25.0
    assert results['iterative'][0] != pytest.approx(results['batched'][0])


def test_pre_match_probs_and_ratings():
    time_steps = np.array([0, 1])
    matchups = np.array([[0, 1], [0, 1]])
    dataset = MatchupDataset.init_from_arrays(
        time_steps=time_steps, matchups=matchups, outcomes=np.array([1.0, 1.0]), competitors=['a', 'b']
    )
    model = FactorGraphTrueSkill(competitors=dataset.competitors)
    probs, ratings = model.fit_dataset(dataset, return_pre_match_probs=True, return_pre_match_ratings=True)
    assert probs.shape == (2,)
    assert probs[0] == pytest.approx(0.5)
    assert probs[1] > 0.5
    assert ratings.shape == (2, 4)
    np.testing.assert_allclose(ratings[0], [25.0, 25.0 / 3.0, 25.0, 25.0 / 3.0])


def test_invalid_update_method():
    with pytest.raises(ValueError):
        FactorGraphTrueSkill(competitors=[0, 1], update_method='sideways')


def test_print_leaderboard(capsys):
    model = general_trueskill('iterative')
    model.print_leaderboard(2)
    lines = capsys.readouterr().out.strip().split('\n')
    assert len(lines) == 3
    assert lines[1].split('\t')[0].strip() == '0'
