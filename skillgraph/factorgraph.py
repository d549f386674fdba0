"""
Factor graph nodes for the TrueSkill message passing schedule
https://www.moserware.com/assets/computing-your-skill/The%20Math%20Behind%20TrueSkill.pdf

Variables hold a gaussian belief plus the last message received from each connected
factor, keyed by the factor's integer handle. Factors push exactly one message per
call to down() or up() and return the resulting change of the receiving belief so the
schedule can test for convergence.
"""
import math
from typing import List
from skillgraph.gaussian import Gaussian
from skillgraph.utils.constants import INF


class Variable(Gaussian):
    """a belief node, starts out flat"""

    def __init__(self):
        super().__init__()
        self.messages = {}

    def delta(self, other: Gaussian) -> float:
        """convergence signal, not a metric: the precision term enters through a square root"""
        pi_delta = math.fabs(self.pi - other.pi)
        if pi_delta == INF:
            return 0.0
        return max(math.fabs(self.tau - other.tau), math.sqrt(pi_delta))

    def set(self, value: Gaussian) -> float:
        delta = self.delta(value)
        self.pi = value.pi
        self.tau = value.tau
        return delta

    def update_message(self, factor, pi=0.0, tau=0.0, message=None) -> float:
        """swap the message from factor for a new one and fold it into the belief"""
        if message is None:
            message = Gaussian(pi=pi, tau=tau)
        old_message = self.messages[factor.handle]
        self.messages[factor.handle] = message
        return self.set(self / old_message * message)

    def update_value(self, factor, pi=0.0, tau=0.0, value=None) -> float:
        """replace the belief outright and store the message that implies it"""
        if value is None:
            value = Gaussian(pi=pi, tau=tau)
        old_message = self.messages[factor.handle]
        self.messages[factor.handle] = value * old_message / self
        return self.set(value)

    def __repr__(self):
        count = len(self.messages)
        suffix = '' if count == 1 else 's'
        return f'<Variable {super().__repr__()} with {count} connection{suffix}>'


class FactorGraph:
    """
    Arena owning every node of one match's graph.

    Factors are numbered by their position in the arena and variables key their
    messages by that number, so no node keeps a reference back to a factor.
    """

    def __init__(self):
        self.variables: List[Variable] = []
        self.factors: List['Factor'] = []

    def new_variable(self) -> Variable:
        variable = Variable()
        self.variables.append(variable)
        return variable

    def new_variables(self, count: int) -> List[Variable]:
        return [self.new_variable() for _ in range(count)]

    def register(self, factor: 'Factor') -> int:
        self.factors.append(factor)
        return len(self.factors) - 1


class Factor:
    """base class, connects to its variables with a flat message each"""

    def __init__(self, graph: FactorGraph, variables: List[Variable]):
        self.handle = graph.register(self)
        self.vars = variables
        for var in variables:
            var.messages[self.handle] = Gaussian()

    def down(self) -> float:
        return 0.0

    def up(self) -> float:
        return 0.0

    @property
    def var(self) -> Variable:
        if len(self.vars) != 1:
            raise ValueError(f'factor {self.handle} has {len(self.vars)} variables, expected exactly 1')
        return self.vars[0]

    def __repr__(self):
        count = len(self.vars)
        suffix = '' if count == 1 else 's'
        return f'<{type(self).__name__} {self.handle} with {count} connection{suffix}>'


class PriorFactor(Factor):
    """injects a known rating, widened by the dynamics factor"""

    def __init__(self, graph, var, value, dynamic=0.0):
        super().__init__(graph, [var])
        self.value = value
        self.dynamic = dynamic

    def down(self):
        sigma = math.sqrt(self.value.sigma**2.0 + self.dynamic**2.0)
        value = Gaussian(self.value.mu, sigma)
        return self.var.update_value(self, value=value)


class LikelihoodFactor(Factor):
    """value = mean + gaussian noise with a fixed variance"""

    def __init__(self, graph, mean_var, value_var, variance):
        super().__init__(graph, [mean_var, value_var])
        self.mean = mean_var
        self.value = value_var
        self.variance = variance

    def calc_a(self, var):
        return 1.0 / (1.0 + self.variance * var.pi)

    def down(self):
        # update value
        msg = self.mean / self.mean.messages[self.handle]
        a = self.calc_a(msg)
        return self.value.update_message(self, a * msg.pi, a * msg.tau)

    def up(self):
        # update mean
        msg = self.value / self.value.messages[self.handle]
        a = self.calc_a(msg)
        return self.mean.update_message(self, a * msg.pi, a * msg.tau)


class SumFactor(Factor):
    """sum = sum_i coeffs[i] * terms[i]"""

    def __init__(self, graph, sum_var, term_vars, coeffs):
        super().__init__(graph, [sum_var] + list(term_vars))
        self.sum = sum_var
        self.terms = list(term_vars)
        self.coeffs = list(coeffs)

    def down(self):
        msgs = [var.messages[self.handle] for var in self.terms]
        return self.update(self.sum, self.terms, msgs, self.coeffs)

    def up(self, index=0):
        """solve the linear relation for terms[index] given the sum and the other terms"""
        coeff = self.coeffs[index]
        coeffs = []
        for x, c in enumerate(self.coeffs):
            if coeff == 0.0:
                # a zero weight term contributes nothing
                p = 0.0
            elif x == index:
                p = 1.0 / coeff
            else:
                p = -c / coeff
            coeffs.append(p)
        vals = list(self.terms)
        vals[index] = self.sum
        msgs = [var.messages[self.handle] for var in vals]
        return self.update(self.terms[index], vals, msgs, coeffs)

    def update(self, var, vals, msgs, coeffs):
        pi_inv = 0.0
        mu = 0.0
        for val, msg, coeff in zip(vals, msgs, coeffs):
            div = val / msg
            mu += coeff * div.mu
            if pi_inv == INF:
                continue
            if div.pi == 0.0:
                pi_inv = INF
            else:
                pi_inv += coeff**2.0 / div.pi
        if pi_inv == 0.0:
            # every coefficient vanished
            return var.update_message(self, 0.0, 0.0)
        pi = 1.0 / pi_inv
        tau = pi * mu
        return var.update_message(self, pi, tau)


class TruncateFactor(Factor):
    """moment matches the team difference against the observed win or draw"""

    def __init__(self, graph, var, v_func, w_func, draw_margin):
        super().__init__(graph, [var])
        self.v_func = v_func
        self.w_func = w_func
        self.draw_margin = draw_margin

    def up(self):
        val = self.var
        msg = val.messages[self.handle]
        div = val / msg
        sqrt_pi = math.sqrt(div.pi)
        args = (div.tau / sqrt_pi, self.draw_margin * sqrt_pi)
        v = self.v_func(*args)
        w = self.w_func(*args)
        denom = 1.0 - w
        pi, tau = div.pi / denom, (div.tau + sqrt_pi * v) / denom
        return val.update_value(self, pi, tau)
