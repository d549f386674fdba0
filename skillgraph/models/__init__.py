"""
Models Module
=============

Rating systems that run the factor graph environment over whole datasets of matches.

Included Rating Systems:
- FactorGraphTrueSkill: TrueSkill where every head to head match is rated on its own
  factor graph, either sequentially within a rating period or pooled over the period.
"""
from skillgraph.models.trueskill import FactorGraphTrueSkill
