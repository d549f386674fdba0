"""Classes and functions for working with match result data"""

import re
from typing import List, Optional
import numpy as np
import polars as pl

PERIOD_PROG = re.compile(r'^(\d+)([WwDdHhMmSs])$')
SECONDS_PER_UNIT = {
    'W': 7 * 24 * 60 * 60,
    'D': 24 * 60 * 60,
    'H': 60 * 60,
    'M': 60,
    'S': 1,
}


def get_duration(duration_str: str) -> int:
    """number of seconds in a rating period string like '7D', '1W' or '24H'"""
    match = PERIOD_PROG.match(duration_str)
    if not match:
        raise ValueError(f'Invalid rating period: {duration_str}')
    return int(match.group(1)) * SECONDS_PER_UNIT[match.group(2).upper()]


class MatchupDataset:
    """
    Head to head results grouped into rating periods.

    Parameters:
        df (pl.DataFrame): one row per match
        competitor_cols (list of 2 str): columns holding the two competitors
        outcome_col (str): result for the first competitor, 1.0 win, 0.5 draw, 0.0 loss
        datetime_col (str, optional): match timestamps, bucketed into rating periods of rating_period
        time_step_col (str, optional): integer rating period of each match, used as is
        rating_period (str): period length for datetime_col, like '1D' or '2W'
        verbose (bool): print summary statistics

    Exactly one of datetime_col and time_step_col must be given. Rows are expected in
    chronological order.
    """

    def __init__(
        self,
        df: pl.DataFrame,
        competitor_cols: List[str],
        outcome_col: str,
        datetime_col: Optional[str] = None,
        time_step_col: Optional[str] = None,
        rating_period: str = '1W',
        verbose: bool = True,
    ):
        if len(competitor_cols) != 2:
            raise ValueError(f'Expected 2 competitor columns, got {len(competitor_cols)}')
        if sum([bool(datetime_col), bool(time_step_col)]) != 1:
            raise ValueError('Specify exactly one of datetime_col or time_step_col')

        self._init_competitors(df, competitor_cols)
        self._init_matchups(df, competitor_cols)
        self.outcomes = df[outcome_col].cast(pl.Float64).to_numpy()
        if time_step_col:
            self.time_steps = df[time_step_col].to_numpy()
        else:
            self.time_steps = self._convert_datetime(df[datetime_col], rating_period)
        self._process_time_steps()

        if verbose:
            print('Loaded dataset with:')
            print(f'{len(self)} matchups')
            print(f'{self.num_competitors} unique competitors')
            print(f'{len(self.unique_time_steps)} rating periods')

    def _init_competitors(self, df: pl.DataFrame, competitor_cols: List[str]):
        competitor_series = pl.concat([df[col].cast(pl.Utf8) for col in competitor_cols])
        self.competitors = sorted(competitor_series.unique().to_list())
        self.num_competitors = len(self.competitors)
        self.competitor_to_idx = dict(zip(self.competitors, range(self.num_competitors)))

    def _init_matchups(self, df: pl.DataFrame, competitor_cols: List[str]):
        """map competitor names to indices, preserving row order"""
        indexed = df.select(
            [
                pl.col(col).cast(pl.Utf8).replace_strict(self.competitor_to_idx, return_dtype=pl.Int32).alias(f'index{i}')
                for i, col in enumerate(competitor_cols)
            ]
        )
        self.matchups = np.ascontiguousarray(indexed.to_numpy())

    @staticmethod
    def _convert_datetime(datetime_series: pl.Series, rating_period: str) -> np.ndarray:
        if datetime_series.dtype == pl.Date:
            datetime_series = datetime_series.cast(pl.Datetime)
        elif datetime_series.dtype == pl.Utf8:
            datetime_series = datetime_series.str.to_datetime()
        seconds_since_epoch = datetime_series.dt.epoch(time_unit='s').to_numpy()
        period_seconds = get_duration(rating_period)
        return ((seconds_since_epoch - seconds_since_epoch[0]) // period_seconds).astype(np.int32)

    def _process_time_steps(self):
        """find where each rating period ends"""
        self.unique_time_steps, time_indices = np.unique(self.time_steps, return_index=True)
        self.time_step_end_idxs = np.roll(time_indices, -1)
        if len(self.time_step_end_idxs):
            self.time_step_end_idxs[-1] = len(self.time_steps)

    def __len__(self):
        return self.matchups.shape[0]

    def __iter__(self):
        """iterate through rating periods as (matchups, outcomes, time_step)"""
        start_idx = 0
        for time_step, end_idx in zip(self.unique_time_steps, self.time_step_end_idxs):
            yield self.matchups[start_idx:end_idx], self.outcomes[start_idx:end_idx], time_step
            start_idx = end_idx

    def __getitem__(self, key):
        if isinstance(key, slice):
            return self.init_from_arrays(
                time_steps=self.time_steps[key],
                matchups=self.matchups[key],
                outcomes=self.outcomes[key],
                competitors=self.competitors,
            )
        raise ValueError('Only slice indexing supported')

    @classmethod
    def init_from_arrays(cls, time_steps: np.ndarray, matchups: np.ndarray, outcomes: np.ndarray, competitors: list):
        """Factory method for creating datasets from arrays."""
        dataset = cls.__new__(cls)
        dataset.time_steps = np.asarray(time_steps)
        dataset.matchups = np.asarray(matchups)
        dataset.outcomes = np.asarray(outcomes, dtype=np.float64)
        dataset.competitors = competitors
        dataset.num_competitors = len(competitors)
        dataset.competitor_to_idx = dict(zip(competitors, range(len(competitors))))
        dataset._process_time_steps()
        return dataset
