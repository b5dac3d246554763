"""Scoring of candidate methods against a criteria vector.

Only criteria-bound parameters take part in scoring. For each criterion:

==========================================  =====================
Criterion                                   Effect
==========================================  =====================
``None``, non-nullable primitive parameter  candidate rejected
``None``, ``object``/``Any`` parameter      +1
``None``, any other parameter               +0
value of exactly the declared type          +2
value assignable to the declared type       +1
value of an unrelated type                  candidate rejected
==========================================  =====================

Exact-type matches therefore outrank looser ones, so the most specific
signature wins. Candidates whose criteria-bound parameter count differs
from the number of criteria are rejected. Candidates declaring a ``*args``
catch-all are only considered when nothing else matched a non-empty
criteria vector, and then score a flat 1. A ``*args`` narrowed to another
type never matches.
Ties are broken by :func:`pick`, which favours the candidate that takes
the most injected parameters.
"""

import logging
from typing import Any, Iterable, Literal, Optional, Sequence, Union, get_args, get_origin

from dataportal.config import DispatchConfig
from dataportal.domain import CandidateMethod, OperationKind, ScoredCandidate, describe_target
from dataportal.errors import AmbiguousMatchError

__all__ = ["CandidateScorer", "pick", "VARIADIC_SCORE"]

logger = logging.getLogger(__name__)

VARIADIC_SCORE = 1
"""Fixed score given to ``*args`` candidates when no exact-arity candidate matches."""

_UNIVERSAL_TYPES = (object, Any)


class CandidateScorer:
    """Rank candidates against a concrete criteria vector."""

    def __init__(self, config: Optional[DispatchConfig] = None):
        self._non_nullable_types = (config or DispatchConfig()).non_nullable_types

    def score(self, candidate: CandidateMethod, criteria: Sequence[Any]) -> Optional[int]:
        """Score a single candidate.

        Args:
            candidate: The candidate method.
            criteria: The criteria values; may be empty.

        Returns:
            The score, or None if the candidate cannot accept these criteria.
        """
        parameters = candidate.positional_parameters
        if candidate.variadic or candidate.typed_variadic or len(parameters) != len(criteria):
            return None

        score = 0
        for value, parameter in zip(criteria, parameters):
            declared_type = parameter.declared_type
            if value is None:
                if declared_type in self._non_nullable_types and not parameter.nullable:
                    return None
                if declared_type in _UNIVERSAL_TYPES:
                    score += 1
            elif _is_exact(value, declared_type):
                score += 2
            elif _is_assignable(value, declared_type):
                score += 1
            else:
                return None
        return score

    def score_all(
        self, candidates: Iterable[CandidateMethod], criteria: Sequence[Any]
    ) -> list[ScoredCandidate]:
        """Score every candidate, falling back to ``*args`` catch-alls if none match.

        Returns:
            The applicable candidates with their scores, in discovery order.
        """
        candidates = list(candidates)
        matches = []
        for candidate in candidates:
            score = self.score(candidate, criteria)
            logger.debug("Scored %s against %d criteria: %s", candidate, len(criteria), score)
            if score is not None:
                matches.append(ScoredCandidate(candidate, score))

        if not matches and len(criteria) > 0:
            matches = [
                ScoredCandidate(candidate, VARIADIC_SCORE)
                for candidate in candidates
                if candidate.variadic
            ]
            if matches:
                logger.debug("Falling back to %d variadic candidates", len(matches))

        return matches


def pick(
    matches: list[ScoredCandidate],
    target_type: Optional[type] = None,
    kind: Optional[OperationKind] = None,
) -> CandidateMethod:
    """Choose the single best match.

    A lone match wins outright. Otherwise every score is raised by the
    candidate's injected-parameter count, so a handler that takes more of its
    parameters from the service provider is preferred, and the highest score
    wins.

    Raises:
        ValueError: If ``matches`` is empty.
        AmbiguousMatchError: If two or more candidates share the highest score.
    """
    if not matches:
        raise ValueError("No matches to pick from")
    if len(matches) == 1:
        return matches[0].method

    for match in matches:
        match.score += len(match.method.injected_parameters)

    best_score = max(match.score for match in matches)
    best = [match for match in matches if match.score == best_score]
    if len(best) > 1:
        raise AmbiguousMatchError(
            f"{describe_target(target_type)}.[{kind.value if kind else '?'}] is ambiguous between "
            f"{', '.join(str(match.method) for match in best)}",
            target_type,
            kind,
            [match.method for match in best],
        )
    return best[0].method


def _is_exact(value: Any, declared_type: Any) -> bool:
    value_type = type(value)
    origin = get_origin(declared_type)
    if origin is Union:
        return value_type in get_args(declared_type)
    if origin is not None and origin is not Literal:
        return value_type is origin
    return value_type is declared_type


def _is_assignable(value: Any, declared_type: Any) -> bool:
    if declared_type in _UNIVERSAL_TYPES:
        return True

    origin = get_origin(declared_type)
    if origin is Literal:
        return value in get_args(declared_type)
    if origin is Union:
        return any(_is_assignable(value, member) for member in get_args(declared_type))

    try:
        return isinstance(value, origin or declared_type)
    except TypeError:
        logger.debug("Cannot check %r against declared type %r", value, declared_type)
        return False