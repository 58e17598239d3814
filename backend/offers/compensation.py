"""
Compensation normalization and cost-of-living adjustment.

Turns heterogeneous offer records into a canonical four-part compensation
breakdown (salary, bonus, equity, benefits) and rescales totals by a
cost-of-living index where 100 is the baseline.

Clamp policy: negative salary, bonus, equity or benefits values are treated as
0 and a warning is logged naming the offer and field. Non-numeric values are
rejected with ``InvalidInput``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from offers.errors import InvalidInput

logger = logging.getLogger(__name__)

# Preset annual benefits value used when an offer does not state one.
DEFAULT_BENEFITS_VALUE = Decimal('15000')
BASELINE_COL_INDEX = Decimal('100')

WORK_MODES = ('remote', 'hybrid', 'onsite')

_WORK_MODE_SYNONYMS = {
    'remote': ('remote', 'wfh', 'work from home', 'distributed', 'anywhere', 'telecommute'),
    'hybrid': ('hybrid', 'flexible', 'flex', 'partially remote', 'part remote'),
    'onsite': ('onsite', 'on-site', 'on site', 'in office', 'in-office', 'office', 'in person', 'in-person'),
}

# Lightweight COL data pulled from public cost-of-living indexes.
COST_OF_LIVING_INDEXES = {
    'san francisco': Decimal('180'),
    'new york': Decimal('168'),
    'seattle': Decimal('145'),
    'boston': Decimal('140'),
    'los angeles': Decimal('138'),
    'washington, dc': Decimal('135'),
    'austin': Decimal('118'),
    'denver': Decimal('112'),
    'chicago': Decimal('110'),
    'atlanta': Decimal('108'),
    'dallas': Decimal('105'),
    'remote': BASELINE_COL_INDEX,
}


def to_decimal(value: Any, field: str, job_id: Optional[str] = None, default: Decimal = Decimal('0')) -> Decimal:
    if value in (None, '', 'null'):
        return Decimal(default)
    if isinstance(value, bool):
        raise InvalidInput(f'{field} must be a numeric value.', field=field, job_id=job_id)
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidInput(f'{field} must be a numeric value.', field=field, job_id=job_id)
    if not amount.is_finite():
        raise InvalidInput(f'{field} must be a finite number.', field=field, job_id=job_id)
    return amount


def apply_pct(value: Decimal, pct: Decimal) -> Decimal:
    """Return ``value * (1 + pct/100)``, never below 0."""
    result = value * (Decimal('1') + pct / Decimal('100'))
    return result if result > 0 else Decimal('0')


def normalize_work_mode(text: Optional[str]) -> str:
    if not text:
        return 'onsite'
    key = str(text).lower().strip()
    if key in WORK_MODES:
        return key
    # Hybrid first so "hybrid remote" style labels are not read as remote.
    for mode in ('hybrid', 'remote', 'onsite'):
        if any(word in key for word in _WORK_MODE_SYNONYMS[mode]):
            return mode
    return 'onsite'


def infer_cost_of_living_index(location: str) -> Decimal:
    if not location:
        return BASELINE_COL_INDEX
    key = location.lower().strip()
    for city, index in COST_OF_LIVING_INDEXES.items():
        if city in key:
            return index
    return BASELINE_COL_INDEX


@dataclass(frozen=True)
class OfferInput:
    """An offer as read from the offer source. Never mutated by the engine."""

    job_id: str
    company: str = ''
    job_title: str = ''
    location: str = ''
    work_mode: str = 'onsite'
    salary: Any = 0
    bonus: Any = 0
    equity: Any = 0
    benefits: Any = None
    archived: bool = False
    archive_reason: str = ''

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'OfferInput':
        job_id = data.get('job_id', data.get('_id', data.get('id')))
        if job_id in (None, ''):
            raise InvalidInput('Every offer needs a job_id.', field='job_id')

        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            job_id=str(job_id),
            company=pick('company', 'company_name', default='') or '',
            job_title=pick('job_title', 'jobTitle', 'role_title', default='') or '',
            location=pick('location', default='') or '',
            work_mode=normalize_work_mode(pick('work_mode', 'workMode', 'remote_policy', default='')),
            salary=pick('salary', 'finalSalary', 'base_salary', default=0),
            bonus=pick('bonus', 'salaryBonus', default=0),
            equity=pick('equity', 'salaryEquity', default=0),
            benefits=pick('benefits', 'benefitsValue', 'benefits_value'),
            archived=bool(pick('archived', default=False)),
            archive_reason=pick('archive_reason', 'archiveReason', default='') or '',
        )


@dataclass(frozen=True)
class ScenarioOverrides:
    salary_increase_pct: Decimal = Decimal('0')
    bonus_increase_pct: Decimal = Decimal('0')
    equity_increase_pct: Decimal = Decimal('0')
    benefits_increase_pct: Decimal = Decimal('0')

    FIELDS = ('salary_increase_pct', 'bonus_increase_pct', 'equity_increase_pct', 'benefits_increase_pct')

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]], job_id: Optional[str] = None) -> 'ScenarioOverrides':
        data = data or {}
        aliases = {
            'salary_increase_pct': 'salaryIncreasePct',
            'bonus_increase_pct': 'bonusIncreasePct',
            'equity_increase_pct': 'equityIncreasePct',
            'benefits_increase_pct': 'benefitsIncreasePct',
        }
        values = {}
        for field in cls.FIELDS:
            raw = data.get(field, data.get(aliases[field]))
            values[field] = to_decimal(raw, f'scenario.{field}', job_id)
        return cls(**values)

    @property
    def applied(self) -> bool:
        return any(getattr(self, field) != 0 for field in self.FIELDS)

    def as_dict(self) -> Dict[str, float]:
        return {field: float(getattr(self, field)) for field in self.FIELDS}


@dataclass(frozen=True)
class CompensationBreakdown:
    salary: Decimal
    bonus: Decimal
    equity: Decimal
    benefits: Decimal
    benefits_estimated: bool = False

    @property
    def total_comp(self) -> Decimal:
        return self.salary + self.bonus + self.equity + self.benefits


def clamp_non_negative(value: Decimal, field: str, job_id: str) -> Decimal:
    if value < 0:
        logger.warning('Clamped negative %s (%s) to 0 for offer %s', field, value, job_id)
        return Decimal('0')
    return value


def normalize_compensation(
    offer: OfferInput,
    scenario: Optional[ScenarioOverrides] = None,
    *,
    default_benefits: Decimal = DEFAULT_BENEFITS_VALUE,
) -> CompensationBreakdown:
    job_id = offer.job_id
    salary = clamp_non_negative(to_decimal(offer.salary, 'salary', job_id), 'salary', job_id)
    bonus = clamp_non_negative(to_decimal(offer.bonus, 'bonus', job_id), 'bonus', job_id)
    equity = clamp_non_negative(to_decimal(offer.equity, 'equity', job_id), 'equity', job_id)

    benefits_estimated = offer.benefits in (None, '', 'null')
    if benefits_estimated:
        benefits = Decimal(default_benefits)
    else:
        benefits = clamp_non_negative(to_decimal(offer.benefits, 'benefits', job_id), 'benefits', job_id)

    if scenario is not None and scenario.applied:
        salary = apply_pct(salary, scenario.salary_increase_pct)
        bonus = apply_pct(bonus, scenario.bonus_increase_pct)
        equity = apply_pct(equity, scenario.equity_increase_pct)
        benefits = apply_pct(benefits, scenario.benefits_increase_pct)

    return CompensationBreakdown(
        salary=salary,
        bonus=bonus,
        equity=equity,
        benefits=benefits,
        benefits_estimated=benefits_estimated,
    )


def col_adjusted_total(
    total_comp: Decimal,
    col_index: Any = None,
    *,
    baseline: Any = BASELINE_COL_INDEX,
    job_id: Optional[str] = None,
) -> Decimal:
    """Rescale ``total_comp`` so an index of ``baseline`` means no adjustment."""
    baseline_value = to_decimal(baseline, 'baseline_col_index', default=BASELINE_COL_INDEX)
    if baseline_value <= 0:
        raise InvalidInput('Baseline cost-of-living index must be greater than 0.', field='baseline_col_index')
    index = to_decimal(col_index, 'col_index', job_id, default=baseline_value)
    if index <= 0:
        raise InvalidInput('Cost-of-living index must be greater than 0.', field='col_index', job_id=job_id)
    return Decimal(total_comp) * baseline_value / index
