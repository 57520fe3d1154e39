"""
Formula evaluation for expression-driven counts.

A formula is a small C-like expression over the aggregates of the metric
series and the current count, e.g. ``MetricsMax > 5 ? 7 : 5``. The result is
truncated toward zero to give an instance count.
"""
from typing import Callable, Dict, List, Optional, Sequence, Union
from dataclasses import dataclass
from abc import ABC, abstractmethod
import math
import re

from ..core.exceptions import ExpressionError
from ..monitoring.metrics import MetricAggregator, TimestampedMetric

CURRENT_COUNT_VARIABLE = "CurrentCount"

Value = Union[float, bool]

_TOKEN_PATTERN = re.compile(r"""
    (?P<space>\s+)
  | (?P<number>\d+\.\d*|\.\d+|\d+)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>&&|\|\||==|!=|<=|>=|[-+*/%<>!?:(),])
""", re.VERBOSE)

@dataclass
class Token:
    kind: str
    text: str
    position: int

def tokenize(formula: str) -> List[Token]:
    """Split a formula into tokens, raising ExpressionError on stray characters."""
    tokens = []
    position = 0
    while position < len(formula):
        match = _TOKEN_PATTERN.match(formula, position)
        if not match:
            raise ExpressionError(
                f"Unexpected character {formula[position]!r} at position {position}",
                formula=formula,
                position=position
            )
        if match.lastgroup != 'space':
            tokens.append(Token(match.lastgroup, match.group(), position))
        position = match.end()
    tokens.append(Token('end', '', len(formula)))
    return tokens

# AST nodes

class Node(ABC):
    @abstractmethod
    def evaluate(self, bindings: Dict[str, float]) -> Value:
        pass

@dataclass
class Literal(Node):
    value: Value

    def evaluate(self, bindings):
        return self.value

@dataclass
class Variable(Node):
    name: str
    formula: str

    def evaluate(self, bindings):
        if self.name not in bindings:
            raise ExpressionError(f"Unknown variable: {self.name}", formula=self.formula)
        return bindings[self.name]

@dataclass
class Unary(Node):
    op: str
    operand: Node
    formula: str

    def evaluate(self, bindings):
        value = self.operand.evaluate(bindings)
        if self.op == '!':
            return not _as_bool(value, self.op, self.formula)
        number = _as_number(value, self.op, self.formula)
        return -number if self.op == '-' else number

@dataclass
class Binary(Node):
    op: str
    left: Node
    right: Node
    formula: str

    def evaluate(self, bindings):
        if self.op in ('&&', '||'):
            left = _as_bool(self.left.evaluate(bindings), self.op, self.formula)
            if self.op == '&&' and not left:
                return False
            if self.op == '||' and left:
                return True
            return _as_bool(self.right.evaluate(bindings), self.op, self.formula)

        left = self.left.evaluate(bindings)
        right = self.right.evaluate(bindings)

        if self.op in ('==', '!='):
            if isinstance(left, bool) != isinstance(right, bool):
                raise ExpressionError(
                    f"Cannot compare boolean and number with {self.op}",
                    formula=self.formula
                )
            return (left == right) if self.op == '==' else (left != right)

        left = _as_number(left, self.op, self.formula)
        right = _as_number(right, self.op, self.formula)

        if self.op == '+':
            return left + right
        if self.op == '-':
            return left - right
        if self.op == '*':
            return left * right
        if self.op in ('/', '%'):
            if right == 0:
                raise ExpressionError("Division by zero", formula=self.formula)
            if self.op == '/':
                return left / right
            _require_finite([left, right], self.op, self.formula)
            return math.fmod(left, right)
        if self.op == '<':
            return left < right
        if self.op == '<=':
            return left <= right
        if self.op == '>':
            return left > right
        return left >= right

@dataclass
class Conditional(Node):
    condition: Node
    then_branch: Node
    else_branch: Node
    formula: str

    def evaluate(self, bindings):
        if _as_bool(self.condition.evaluate(bindings), '?', self.formula):
            return self.then_branch.evaluate(bindings)
        return self.else_branch.evaluate(bindings)

@dataclass
class Call(Node):
    function: str
    arguments: List[Node]
    formula: str

    def evaluate(self, bindings):
        args = [_as_number(a.evaluate(bindings), self.function, self.formula) for a in self.arguments]
        name, arity = self.function, len(args)
        if name in ('min', 'max'):
            if arity == 0:
                raise ExpressionError(f"{name}() needs at least one argument", formula=self.formula)
            return min(args) if name == 'min' else max(args)
        if arity != 1:
            raise ExpressionError(f"{name}() takes exactly one argument", formula=self.formula)
        _require_finite(args, f"{name}()", self.formula)
        return FUNCTIONS[name](args[0])

def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)

FUNCTIONS: Dict[str, Callable[[float], float]] = {
    'abs': abs,
    'ceil': lambda x: float(math.ceil(x)),
    'floor': lambda x: float(math.floor(x)),
    'round': _round_half_away,
    'min': min,
    'max': max,
}

def _as_number(value: Value, op: str, formula: str) -> float:
    if isinstance(value, bool):
        raise ExpressionError(f"Operator {op} expects a number, got a boolean", formula=formula)
    return value

def _require_finite(values: List[float], op: str, formula: str):
    for value in values:
        if math.isnan(value) or math.isinf(value):
            raise ExpressionError(f"{op} expects a finite number, got {value}", formula=formula)

def _as_bool(value: Value, op: str, formula: str) -> bool:
    if not isinstance(value, bool):
        raise ExpressionError(f"Operator {op} expects a boolean, got {value}", formula=formula)
    return value

class Parser:
    """Recursive descent parser with C operator precedence."""

    _LEVELS = [
        ('||',),
        ('&&',),
        ('==', '!='),
        ('<', '<=', '>', '>='),
        ('+', '-'),
        ('*', '/', '%'),
    ]

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.index = 0

    def parse(self) -> Node:
        if self._peek().kind == 'end':
            raise ExpressionError("Empty expression", formula=self.formula, position=0)
        node = self._conditional()
        token = self._peek()
        if token.kind != 'end':
            self._fail(f"Unexpected {token.text!r}", token)
        return node

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _accept(self, *ops: str) -> Optional[Token]:
        token = self._peek()
        if token.kind == 'op' and token.text in ops:
            return self._advance()
        return None

    def _expect(self, op: str) -> Token:
        token = self._accept(op)
        if token is None:
            self._fail(f"Expected {op!r}", self._peek())
        return token

    def _fail(self, message: str, token: Token):
        where = "end of expression" if token.kind == 'end' else f"position {token.position}"
        raise ExpressionError(f"{message} at {where}", formula=self.formula, position=token.position)

    def _conditional(self) -> Node:
        condition = self._binary(0)
        if self._accept('?'):
            then_branch = self._conditional()
            self._expect(':')
            else_branch = self._conditional()
            return Conditional(condition, then_branch, else_branch, self.formula)
        return condition

    def _binary(self, level: int) -> Node:
        if level == len(self._LEVELS):
            return self._unary()
        node = self._binary(level + 1)
        while True:
            token = self._accept(*self._LEVELS[level])
            if token is None:
                return node
            node = Binary(token.text, node, self._binary(level + 1), self.formula)

    def _unary(self) -> Node:
        token = self._accept('-', '+', '!')
        if token:
            return Unary(token.text, self._unary(), self.formula)
        return self._primary()

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == 'number':
            return Literal(float(token.text))
        if token.kind == 'name':
            if token.text in ('true', 'false'):
                return Literal(token.text == 'true')
            if self._accept('('):
                return self._call(token)
            return Variable(token.text, self.formula)
        if token.kind == 'op' and token.text == '(':
            node = self._conditional()
            self._expect(')')
            return node
        self._fail(f"Unexpected {token.text!r}" if token.text else "Unexpected", token)

    def _call(self, name: Token) -> Node:
        if name.text not in FUNCTIONS:
            self._fail(f"Unknown function {name.text!r}", name)
        arguments = []
        if not self._accept(')'):
            arguments.append(self._conditional())
            while self._accept(','):
                arguments.append(self._conditional())
            self._expect(')')
        return Call(name.text, arguments, self.formula)

class ExpressionEvaluator(ABC):
    """Interface of a formula engine."""

    @abstractmethod
    def evaluate(self, formula: str, bindings: Dict[str, float]) -> int:
        """Evaluate formula against bindings, raising ExpressionError on failure."""
        pass

class FormulaEvaluator(ExpressionEvaluator):
    """Evaluates formulas with the grammar of this module."""

    def compile(self, formula: str) -> Node:
        return Parser(formula).parse()

    def evaluate(self, formula: str, bindings: Dict[str, float]) -> int:
        try:
            result = self.compile(formula).evaluate(bindings)
        except RecursionError:
            raise ExpressionError("Expression is nested too deeply", formula=formula)
        if isinstance(result, bool):
            raise ExpressionError("Expression must evaluate to a number, got a boolean", formula=formula)
        if math.isnan(result) or math.isinf(result):
            raise ExpressionError(f"Expression evaluated to {result}", formula=formula)
        return int(result)

def build_bindings(current_count: int, metrics: Sequence[TimestampedMetric]) -> Dict[str, float]:
    """Variables available to every formula."""
    bindings = MetricAggregator.aggregate(metrics)
    bindings[CURRENT_COUNT_VARIABLE] = float(current_count)
    return bindings

_default_evaluator = FormulaEvaluator()

def evaluate_expression(
    formula: str,
    current_count: int,
    metrics: Sequence[TimestampedMetric],
    evaluator: Optional[ExpressionEvaluator] = None
) -> int:
    """
    Evaluate a formula against the current count and a metric series.

    Args:
        formula: Formula text
        current_count: Current instance count
        metrics: Metric samples
        evaluator: Optional engine, defaults to FormulaEvaluator

    Returns:
        Integer result, truncated toward zero
    """
    evaluator = evaluator or _default_evaluator
    return evaluator.evaluate(formula, build_bindings(current_count, metrics))
