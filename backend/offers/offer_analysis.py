"""
Offer comparison analytics.

Scores a set of offers on cost-of-living adjusted compensation and
non-financial ratings, derives negotiation guidance against the best competing
offer, and assembles the row-oriented comparison matrix the frontend renders.

Everything here is a pure function of its arguments: no settings, clocks,
randomness or I/O, so identical inputs always produce identical output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from offers.compensation import (
    BASELINE_COL_INDEX,
    DEFAULT_BENEFITS_VALUE,
    OfferInput,
    ScenarioOverrides,
    col_adjusted_total,
    normalize_compensation,
    to_decimal,
)
from offers.errors import InvalidInput

logger = logging.getLogger(__name__)

MIN_OFFERS = 2
DEFAULT_FINANCIAL_WEIGHT = Decimal('0.65')
RATING_MIN = 1
RATING_MAX = 5
DEFAULT_RATING = 3
SCORE_PRECISION = Decimal('1e-9')
NEGOTIATION_GAP_POINTS = Decimal('10')

NEUTRAL_RECOMMENDATION = 'Competitive offer, no immediate negotiation gap identified.'

MATRIX_VERSION = 1
MATRIX_ROWS = (
    {'label': 'Base salary', 'key': 'salary'},
    {'label': 'Bonus', 'key': 'bonus'},
    {'label': 'Equity (annualized)', 'key': 'equity'},
    {'label': 'Benefits value', 'key': 'benefits'},
    {'label': 'Total comp', 'key': 'total_comp'},
    {'label': 'COL index', 'key': 'col_index'},
    {'label': 'COL-adjusted total', 'key': 'col_adjusted_total'},
    {'label': 'Non-financial score', 'key': 'non_financial_score'},
    {'label': 'Financial score', 'key': 'financial_score'},
    {'label': 'Overall score', 'key': 'overall_score'},
)

_CENTS = Decimal('0.01')


def _round2(value: Decimal) -> float:
    return float(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP))


def _format_currency(value: Decimal) -> str:
    return f"${float(value):,.0f}"


def _offer_label(row: Dict[str, Any]) -> str:
    return row['company'] or row['job_title'] or f"Offer {row['job_id']}"


@dataclass(frozen=True)
class Ratings:
    culture_fit: int = DEFAULT_RATING
    growth: int = DEFAULT_RATING
    work_life_balance: int = DEFAULT_RATING
    remote_policy: int = DEFAULT_RATING

    FIELDS = ('culture_fit', 'growth', 'work_life_balance', 'remote_policy')
    ALIASES = {
        'culture_fit': 'cultureFit',
        'growth': 'growth',
        'work_life_balance': 'workLifeBalance',
        'remote_policy': 'remotePolicy',
    }

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]], job_id: Optional[str] = None) -> 'Ratings':
        data = data or {}
        values = {}
        for name in cls.FIELDS:
            raw = data.get(name, data.get(cls.ALIASES[name]))
            rating = to_decimal(raw, f'ratings.{name}', job_id, default=Decimal(DEFAULT_RATING))
            rating = int(rating.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
            values[name] = max(RATING_MIN, min(RATING_MAX, rating))
        return cls(**values)

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in self.FIELDS}


@dataclass(frozen=True)
class Weights:
    financial_weight: Decimal = DEFAULT_FINANCIAL_WEIGHT
    culture_fit_weight: Decimal = Decimal('1')
    growth_weight: Decimal = Decimal('1')
    work_life_balance_weight: Decimal = Decimal('1')
    remote_policy_weight: Decimal = Decimal('1')

    SUB_WEIGHTS = {
        'culture_fit': 'culture_fit_weight',
        'growth': 'growth_weight',
        'work_life_balance': 'work_life_balance_weight',
        'remote_policy': 'remote_policy_weight',
    }
    ALIASES = {
        'financial_weight': 'financialWeight',
        'culture_fit_weight': 'cultureFitWeight',
        'growth_weight': 'growthWeight',
        'work_life_balance_weight': 'workLifeBalanceWeight',
        'remote_policy_weight': 'remotePolicyWeight',
    }

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'Weights':
        data = data or {}
        values = {}
        for name, alias in cls.ALIASES.items():
            default = DEFAULT_FINANCIAL_WEIGHT if name == 'financial_weight' else Decimal('1')
            values[name] = to_decimal(data.get(name, data.get(alias)), f'weights.{name}', default=default)

        financial = values['financial_weight']
        if financial < 0 or financial > 1:
            raise InvalidInput('Financial weight must be between 0 and 1.', field='weights.financial_weight')
        for name in cls.SUB_WEIGHTS.values():
            if values[name] < 0:
                raise InvalidInput(f'{name.replace("_", " ").capitalize()} cannot be negative.', field=f'weights.{name}')
        return cls(**values)

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in self.ALIASES}


@dataclass
class CompareOptions:
    """Validated comparison options, keyed by offer id."""

    col_index_by_job_id: Dict[str, Decimal] = field(default_factory=dict)
    scenario_by_job_id: Dict[str, ScenarioOverrides] = field(default_factory=dict)
    ratings_by_job_id: Dict[str, Ratings] = field(default_factory=dict)
    weights: Weights = field(default_factory=Weights)
    baseline_col_index: Decimal = BASELINE_COL_INDEX

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]], job_ids: Iterable[str]) -> 'CompareOptions':
        options = options or {}
        known = set(job_ids)

        def keyed(name, alias):
            raw = options.get(name, options.get(alias)) or {}
            if not isinstance(raw, Mapping):
                raise InvalidInput(f'{name} must be an object keyed by job id.', field=name)
            result = {}
            for key, value in raw.items():
                job_id = str(key)
                if job_id not in known:
                    raise InvalidInput(
                        f'{name} references offer {job_id}, which is not part of this comparison.',
                        field=name,
                        job_id=job_id,
                    )
                result[job_id] = value
            return result

        baseline = to_decimal(
            options.get('baseline_col_index', options.get('baselineColIndex')),
            'baseline_col_index',
            default=BASELINE_COL_INDEX,
        )
        if baseline <= 0:
            raise InvalidInput('Baseline cost-of-living index must be greater than 0.', field='baseline_col_index')

        col_indexes = {}
        for job_id, value in keyed('col_index_by_job_id', 'colIndexByJobId').items():
            index = to_decimal(value, 'col_index', job_id, default=baseline)
            if index <= 0:
                raise InvalidInput('Cost-of-living index must be greater than 0.', field='col_index', job_id=job_id)
            col_indexes[job_id] = index

        scenarios = {
            job_id: ScenarioOverrides.from_mapping(value, job_id)
            for job_id, value in keyed('scenario_by_job_id', 'scenarioByJobId').items()
        }
        ratings = {
            job_id: Ratings.from_mapping(value, job_id)
            for job_id, value in keyed('ratings_by_job_id', 'ratingsByJobId').items()
        }
        return cls(
            col_index_by_job_id=col_indexes,
            scenario_by_job_id=scenarios,
            ratings_by_job_id=ratings,
            weights=Weights.from_mapping(options.get('weights')),
            baseline_col_index=baseline,
        )

    def as_inputs(self) -> Dict[str, Any]:
        """Canonical JSON-ready form; ``compare(offers, inputs)`` replays the result."""
        return {
            'baseline_col_index': float(self.baseline_col_index),
            'col_index_by_job_id': {k: float(v) for k, v in self.col_index_by_job_id.items()},
            'scenario_by_job_id': {k: v.as_dict() for k, v in self.scenario_by_job_id.items()},
            'ratings_by_job_id': {k: v.as_dict() for k, v in self.ratings_by_job_id.items()},
            'weights': self.weights.as_dict(),
        }


def score_financial(adjusted_total: Decimal, best_adjusted: Decimal) -> Decimal:
    if best_adjusted <= 0:
        return Decimal('0')
    return Decimal('100') * adjusted_total / best_adjusted


def score_non_financial(ratings: Ratings, weights: Weights) -> Decimal:
    weighted = Decimal('0')
    total_weight = Decimal('0')
    for name, weight_name in Weights.SUB_WEIGHTS.items():
        weight = getattr(weights, weight_name)
        rescaled = Decimal(getattr(ratings, name) - RATING_MIN) / Decimal(RATING_MAX - RATING_MIN) * Decimal('100')
        weighted += weight * rescaled
        total_weight += weight
    if total_weight == 0:
        return Decimal('0')
    return weighted / total_weight


def score_overall(financial_score: Decimal, non_financial_score: Decimal, financial_weight: Decimal) -> Decimal:
    return financial_weight * financial_score + (Decimal('1') - financial_weight) * non_financial_score


def rank_offers(rows: List[Dict[str, Any]], key: str = '_overall') -> List[str]:
    """
    Job ids by score descending.

    Scores are compared after rounding to ``SCORE_PRECISION``; rows whose
    rounded scores are equal keep input order.
    """
    ordered = sorted(
        enumerate(rows),
        key=lambda item: (-Decimal(str(item[1][key])).quantize(SCORE_PRECISION, rounding=ROUND_HALF_UP), item[0]),
    )
    return [row['job_id'] for _, row in ordered]


def _pick_best(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    best = rows[0]
    for row in rows[1:]:
        if row['_adjusted'] > best['_adjusted']:
            best = row
    return best


def generate_negotiation_recommendations(
    row: Dict[str, Any],
    rows: List[Dict[str, Any]],
    best: Dict[str, Any],
) -> List[str]:
    recs: List[str] = []
    is_best = row['job_id'] == best['job_id']
    best_label = _offer_label(best)

    if not is_best and best['_financial'] - row['_financial'] > NEGOTIATION_GAP_POINTS:
        gap = best['_adjusted'] - row['_adjusted']
        recs.append(
            f"Request a salary or bonus increase: this offer trails {best_label} by "
            f"{_format_currency(gap)} in cost-of-living adjusted total compensation."
        )

    if (
        not is_best
        and row['_non_financial'] - best['_non_financial'] > NEGOTIATION_GAP_POINTS
        and row['_financial'] < best['_financial']
    ):
        recs.append(
            f"Use this offer's non-financial strengths (culture, growth, balance, remote policy) as leverage: "
            f"it outscores {best_label} on fit, so frame your counter around matching their compensation."
        )

    if row['_equity'] == 0 and any(other['_equity'] > 0 for other in rows if other['job_id'] != row['job_id']):
        recs.append('Ask whether this role is eligible for equity or RSUs; a competing offer includes equity.')

    if not recs:
        recs.append(NEUTRAL_RECOMMENDATION)
    return recs


def _build_summary(rows: List[Dict[str, Any]], ranking: List[str], best: Dict[str, Any]) -> Dict[str, Any]:
    by_id = {row['job_id']: row for row in rows}
    top = by_id[ranking[0]]
    notes = []
    if top['job_id'] != best['job_id']:
        notes.append(f"{_offer_label(top)} wins overall, but {_offer_label(best)} leads on cost-of-living adjusted compensation.")
    else:
        notes.append(f"{_offer_label(top)} leads on both adjusted total compensation and weighted score.")
    notes.append('Use scenario overrides to test negotiation levers like +10% salary or richer benefits.')
    return {
        'top_overall': {'job_id': top['job_id'], 'company': top['company'], 'score': top['overall_score']},
        'highest_total_comp': {
            'job_id': best['job_id'],
            'company': best['company'],
            'col_adjusted_total': best['col_adjusted_total'],
        },
        'notes': notes,
    }


def _coerce_offers(offers: Iterable[Any]) -> List[OfferInput]:
    coerced = []
    for offer in offers:
        if isinstance(offer, OfferInput):
            coerced.append(offer)
        elif isinstance(offer, Mapping):
            coerced.append(OfferInput.from_mapping(offer))
        else:
            raise InvalidInput('Offers must be OfferInput instances or mappings.', field='offers')
    return coerced


def compare_inputs(offers: Iterable[Any], options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return the canonical ``inputs`` record for a saved comparison."""
    job_ids = [offer.job_id for offer in _coerce_offers(offers)]
    return CompareOptions.from_mapping(options, job_ids).as_inputs()


def compare(
    offers: Iterable[Any],
    options: Optional[Mapping[str, Any]] = None,
    *,
    default_benefits: Decimal = DEFAULT_BENEFITS_VALUE,
) -> Dict[str, Any]:
    offers = _coerce_offers(offers)
    if len(offers) < MIN_OFFERS:
        raise InvalidInput(f'At least {MIN_OFFERS} offers are required for a comparison.', field='offers')

    job_ids = [offer.job_id for offer in offers]
    seen = set()
    for job_id in job_ids:
        if job_id in seen:
            raise InvalidInput(f'Offer {job_id} appears more than once.', field='offers', job_id=job_id)
        seen.add(job_id)

    opts = CompareOptions.from_mapping(options, job_ids)
    weights = opts.weights

    rows: List[Dict[str, Any]] = []
    for offer in offers:
        comp = normalize_compensation(
            offer,
            opts.scenario_by_job_id.get(offer.job_id),
            default_benefits=default_benefits,
        )
        col_index = opts.col_index_by_job_id.get(offer.job_id, opts.baseline_col_index)
        adjusted = col_adjusted_total(comp.total_comp, col_index, baseline=opts.baseline_col_index, job_id=offer.job_id)
        ratings = opts.ratings_by_job_id.get(offer.job_id, Ratings())

        salary, bonus, equity, benefits = (
            float(part.quantize(_CENTS, rounding=ROUND_HALF_UP))
            for part in (comp.salary, comp.bonus, comp.equity, comp.benefits)
        )

        rows.append({
            'job_id': offer.job_id,
            'company': offer.company,
            'job_title': offer.job_title,
            'location': offer.location,
            'work_mode': offer.work_mode,
            'archived': offer.archived,
            'archive_reason': offer.archive_reason,
            'salary': salary,
            'bonus': bonus,
            'equity': equity,
            'benefits': benefits,
            'benefits_estimated': comp.benefits_estimated,
            # Summed as reported floats so clients adding the parts get the same value.
            'total_comp': salary + bonus + equity + benefits,
            'col_index': float(col_index),
            'col_adjusted_total': _round2(adjusted),
            'ratings': ratings.as_dict(),
            '_adjusted': adjusted,
            '_equity': comp.equity,
            '_non_financial': score_non_financial(ratings, weights),
        })

    best_adjusted = max(row['_adjusted'] for row in rows)
    if best_adjusted <= 0:
        raise InvalidInput('At least one offer needs a positive total compensation.', field='total_comp')

    for row in rows:
        row['_financial'] = score_financial(row['_adjusted'], best_adjusted)
        row['_overall'] = score_overall(row['_financial'], row['_non_financial'], weights.financial_weight)
        row['financial_score'] = _round2(row['_financial'])
        row['non_financial_score'] = _round2(row['_non_financial'])
        row['overall_score'] = _round2(row['_overall'])

    best = _pick_best(rows)
    for row in rows:
        row['negotiation_recommendations'] = generate_negotiation_recommendations(row, rows, best)

    ranking = rank_offers(rows)
    summary = _build_summary(rows, ranking, best)
    logger.debug('Compared %d offers; top overall %s', len(rows), ranking[0])

    return {
        'offers': [{k: v for k, v in row.items() if not k.startswith('_')} for row in rows],
        'matrix_rows': [dict(item) for item in MATRIX_ROWS],
        'matrix_version': MATRIX_VERSION,
        'ranking': ranking,
        'weights': weights.as_dict(),
        'summary': summary,
        'analysis_summary': ' '.join(summary['notes']),
    }
