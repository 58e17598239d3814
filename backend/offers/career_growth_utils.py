"""
Career growth projections for job offers.

Simulates year-by-year compensation for 5 and 10 year horizons under three
named raise scenarios. Salary compounds by the scenario raise, bonus, equity
and benefits compound by their own flat growth rates, and milestones
(promotions, title changes) stack their bumps on top of the compounded value
for the year they target.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from offers.compensation import (
    DEFAULT_BENEFITS_VALUE,
    OfferInput,
    apply_pct,
    clamp_non_negative,
    normalize_compensation,
    to_decimal,
)
from offers.errors import InvalidInput

logger = logging.getLogger(__name__)

MAX_PROJECTION_YEARS = 10
SHORT_HORIZON_YEARS = 5
DEFAULT_TITLE = '—'
MAX_MILESTONES = 20

SCENARIO_DEFS = (
    ('conservative', 'Conservative'),
    ('expected', 'Expected'),
    ('optimistic', 'Optimistic'),
)

FALLBACK_RATIONALE = (
    'Base salary raises follow the selected scenario. Bonus, equity and benefits are held flat '
    'by default unless you provide growth rates or milestones.'
)

_CENTS = Decimal('0.01')


def _cents(value: Decimal) -> Decimal:
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def _pick(data: Mapping[str, Any], name: str, alias: str):
    return data.get(name, data.get(alias))


@dataclass(frozen=True)
class RaiseScenarios:
    conservative_pct: Decimal = Decimal('2')
    expected_pct: Decimal = Decimal('3')
    optimistic_pct: Decimal = Decimal('5')

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'RaiseScenarios':
        data = data or {}
        defaults = cls()
        return cls(
            conservative_pct=to_decimal(
                _pick(data, 'conservative_pct', 'conservativePct'),
                'raise_scenarios.conservative_pct',
                default=defaults.conservative_pct,
            ),
            expected_pct=to_decimal(
                _pick(data, 'expected_pct', 'expectedPct'),
                'raise_scenarios.expected_pct',
                default=defaults.expected_pct,
            ),
            optimistic_pct=to_decimal(
                _pick(data, 'optimistic_pct', 'optimisticPct'),
                'raise_scenarios.optimistic_pct',
                default=defaults.optimistic_pct,
            ),
        )

    def pct_for(self, key: str) -> Decimal:
        return getattr(self, f'{key}_pct')


@dataclass(frozen=True)
class CareerMilestone:
    year: int
    title: Optional[str] = None
    salary_bump_pct: Decimal = Decimal('0')
    bonus_bump_pct: Decimal = Decimal('0')
    equity_bump_pct: Decimal = Decimal('0')
    benefits_bump_pct: Decimal = Decimal('0')
    note: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], position: int, job_id: Optional[str] = None) -> 'CareerMilestone':
        prefix = f'milestones[{position}]'
        if not isinstance(data, Mapping):
            raise InvalidInput('Each milestone must be an object.', field=prefix, job_id=job_id)

        year = to_decimal(data.get('year'), f'{prefix}.year', job_id, default=Decimal('-1'))
        if year != year.to_integral_value() or not 1 <= year <= MAX_PROJECTION_YEARS:
            raise InvalidInput(
                f'Milestone year must be a whole number between 1 and {MAX_PROJECTION_YEARS}.',
                field=f'{prefix}.year',
                job_id=job_id,
            )

        bumps = {}
        for name, alias in (
            ('salary_bump_pct', 'salaryBumpPct'),
            ('bonus_bump_pct', 'bonusBumpPct'),
            ('equity_bump_pct', 'equityBumpPct'),
            ('benefits_bump_pct', 'benefitsBumpPct'),
        ):
            bumps[name] = to_decimal(_pick(data, name, alias), f'{prefix}.{name}', job_id)

        title = data.get('title')
        note = data.get('note')
        return cls(
            year=int(year),
            title=str(title).strip() if title not in (None, '') else None,
            note=str(note) if note not in (None, '') else None,
            **bumps,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            'year': self.year,
            'title': self.title,
            'salary_bump_pct': float(self.salary_bump_pct),
            'bonus_bump_pct': float(self.bonus_bump_pct),
            'equity_bump_pct': float(self.equity_bump_pct),
            'benefits_bump_pct': float(self.benefits_bump_pct),
            'note': self.note,
        }


@dataclass(frozen=True)
class StartingComp:
    salary: Decimal
    bonus: Decimal
    equity: Decimal
    benefits: Decimal


def _parse_milestones(raw: Any, job_id: Optional[str] = None) -> List[CareerMilestone]:
    if raw in (None, ''):
        return []
    if not isinstance(raw, (list, tuple)):
        raise InvalidInput('Milestones must be a list.', field='milestones', job_id=job_id)
    if len(raw) > MAX_MILESTONES:
        raise InvalidInput(f'At most {MAX_MILESTONES} milestones are supported.', field='milestones', job_id=job_id)
    milestones = [CareerMilestone.from_mapping(item, i, job_id) for i, item in enumerate(raw)]
    # Stable: milestones in the same year keep their declared order.
    return sorted(milestones, key=lambda m: m.year)


@dataclass
class CareerProjectionInputs:
    raise_scenarios: RaiseScenarios = field(default_factory=RaiseScenarios)
    bonus_growth_pct: Decimal = Decimal('0')
    equity_growth_pct: Decimal = Decimal('0')
    benefits_growth_pct: Decimal = Decimal('0')
    milestones: List[CareerMilestone] = field(default_factory=list)
    starting_comp_by_job_id: Dict[str, Mapping[str, Any]] = field(default_factory=dict)
    milestones_by_job_id: Dict[str, List[CareerMilestone]] = field(default_factory=dict)
    career_goals: str = ''
    salary_goals: str = ''
    notes: str = ''

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]], job_ids: Iterable[str]) -> 'CareerProjectionInputs':
        data = data or {}
        known = set(job_ids)

        def keyed(name, alias):
            raw = _pick(data, name, alias) or {}
            if not isinstance(raw, Mapping):
                raise InvalidInput(f'{name} must be an object keyed by job id.', field=name)
            for key in raw:
                if str(key) not in known:
                    raise InvalidInput(
                        f'{name} references offer {key}, which is not part of this projection.',
                        field=name,
                        job_id=str(key),
                    )
            return {str(key): value for key, value in raw.items()}

        starting = keyed('starting_comp_by_job_id', 'startingCompByJobId')
        for job_id, value in starting.items():
            if not isinstance(value, Mapping):
                raise InvalidInput('Starting compensation must be an object.', field='starting_comp_by_job_id', job_id=job_id)

        return cls(
            raise_scenarios=RaiseScenarios.from_mapping(_pick(data, 'raise_scenarios', 'raiseScenarios')),
            bonus_growth_pct=to_decimal(_pick(data, 'bonus_growth_pct', 'bonusGrowthPct'), 'bonus_growth_pct'),
            equity_growth_pct=to_decimal(_pick(data, 'equity_growth_pct', 'equityGrowthPct'), 'equity_growth_pct'),
            benefits_growth_pct=to_decimal(_pick(data, 'benefits_growth_pct', 'benefitsGrowthPct'), 'benefits_growth_pct'),
            milestones=_parse_milestones(data.get('milestones')),
            starting_comp_by_job_id=starting,
            milestones_by_job_id={
                job_id: _parse_milestones(value, job_id)
                for job_id, value in keyed('milestones_by_job_id', 'milestonesByJobId').items()
            },
            career_goals=str(_pick(data, 'career_goals', 'careerGoals') or ''),
            salary_goals=str(_pick(data, 'salary_goals', 'salaryGoals') or ''),
            notes=str(data.get('notes') or ''),
        )

    def milestones_for(self, job_id: str) -> List[CareerMilestone]:
        return self.milestones_by_job_id.get(job_id, self.milestones)


def resolve_starting_comp(
    offer: OfferInput,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    default_benefits: Decimal = DEFAULT_BENEFITS_VALUE,
) -> StartingComp:
    """Offer's normalized compensation, with any explicitly overridden parts replaced."""
    base = normalize_compensation(offer, default_benefits=default_benefits)
    overrides = overrides or {}
    values = {}
    for name in ('salary', 'bonus', 'equity', 'benefits'):
        raw = overrides.get(name)
        if raw in (None, ''):
            values[name] = getattr(base, name)
        else:
            label = f'starting_comp.{name}'
            values[name] = clamp_non_negative(to_decimal(raw, label, offer.job_id), label, offer.job_id)
    return StartingComp(**values)


def build_timeline(
    start: StartingComp,
    *,
    raise_pct: Decimal,
    bonus_growth_pct: Decimal = Decimal('0'),
    equity_growth_pct: Decimal = Decimal('0'),
    benefits_growth_pct: Decimal = Decimal('0'),
    milestones: Iterable[CareerMilestone] = (),
    initial_title: str = '',
    years: int = MAX_PROJECTION_YEARS,
) -> Dict[str, List]:
    """
    Year-indexed compensation arrays for years 0..``years``.

    Each year compounds first, then applies that year's milestone bumps in
    declared order. Values never drop below 0, and ``total_comp`` is the exact
    sum of the reported (cent-rounded) components.
    """
    by_year: Dict[int, List[CareerMilestone]] = {}
    for milestone in milestones:
        by_year.setdefault(milestone.year, []).append(milestone)

    salary, bonus, equity, benefits = start.salary, start.bonus, start.equity, start.benefits
    title = initial_title or DEFAULT_TITLE

    timeline = {
        'years': [],
        'salary': [],
        'bonus': [],
        'equity': [],
        'benefits': [],
        'total_comp': [],
        'title_by_year': [],
    }
    for year in range(years + 1):
        if year > 0:
            salary = apply_pct(salary, raise_pct)
            bonus = apply_pct(bonus, bonus_growth_pct)
            equity = apply_pct(equity, equity_growth_pct)
            benefits = apply_pct(benefits, benefits_growth_pct)
            for milestone in by_year.get(year, []):
                salary = apply_pct(salary, milestone.salary_bump_pct)
                bonus = apply_pct(bonus, milestone.bonus_bump_pct)
                equity = apply_pct(equity, milestone.equity_bump_pct)
                benefits = apply_pct(benefits, milestone.benefits_bump_pct)
                if milestone.title:
                    title = milestone.title

        parts = [float(_cents(value)) for value in (salary, bonus, equity, benefits)]
        timeline['years'].append(year)
        timeline['salary'].append(parts[0])
        timeline['bonus'].append(parts[1])
        timeline['equity'].append(parts[2])
        timeline['benefits'].append(parts[3])
        timeline['total_comp'].append(parts[0] + parts[1] + parts[2] + parts[3])
        timeline['title_by_year'].append(title)
    return timeline


def _slice(timeline: Dict[str, List], years: int) -> Dict[str, List]:
    return {key: list(values[:years + 1]) for key, values in timeline.items()}


def _cumulative(totals: List[float], years: int) -> float:
    return float(sum(Decimal(str(value)) for value in totals[1:years + 1]))


def project_offer(
    offer: OfferInput,
    inputs: CareerProjectionInputs,
    *,
    default_benefits: Decimal = DEFAULT_BENEFITS_VALUE,
) -> Dict[str, Any]:
    start = resolve_starting_comp(
        offer,
        inputs.starting_comp_by_job_id.get(offer.job_id),
        default_benefits=default_benefits,
    )
    milestones = inputs.milestones_for(offer.job_id)

    scenarios = []
    for key, label in SCENARIO_DEFS:
        raise_pct = inputs.raise_scenarios.pct_for(key)
        ten = build_timeline(
            start,
            raise_pct=raise_pct,
            bonus_growth_pct=inputs.bonus_growth_pct,
            equity_growth_pct=inputs.equity_growth_pct,
            benefits_growth_pct=inputs.benefits_growth_pct,
            milestones=milestones,
            initial_title=offer.job_title,
        )
        five = _slice(ten, SHORT_HORIZON_YEARS)
        scenarios.append({
            'key': key,
            'label': label,
            'annual_raise_pct': float(raise_pct),
            'bonus_growth_pct': float(inputs.bonus_growth_pct),
            'equity_growth_pct': float(inputs.equity_growth_pct),
            'benefits_growth_pct': float(inputs.benefits_growth_pct),
            'five_year': five,
            'ten_year': ten,
            'five_year_ending_salary': five['salary'][-1],
            'ten_year_ending_salary': ten['salary'][-1],
            'five_year_ending_total_comp': five['total_comp'][-1],
            'ten_year_ending_total_comp': ten['total_comp'][-1],
            'cumulative_total_comp_5_year': _cumulative(ten['total_comp'], SHORT_HORIZON_YEARS),
            'cumulative_total_comp_10_year': _cumulative(ten['total_comp'], MAX_PROJECTION_YEARS),
        })

    return {
        'job_id': offer.job_id,
        'company': offer.company,
        'job_title': offer.job_title,
        'location': offer.location,
        'work_mode': offer.work_mode,
        'milestones': [m.as_dict() for m in milestones],
        'suggested_milestones': [m.as_dict() for m in suggest_milestones(offer.job_title)],
        'scenarios': scenarios,
    }


# ----------------------------------------------------------------------
# Career ladder suggestions
# ----------------------------------------------------------------------

def normalize_job_title(title: str) -> str:
    """Map a free-text job title onto a standard career level."""
    title_lower = (title or '').lower()
    if any(word in title_lower for word in ['junior', 'associate', 'entry']):
        return 'junior'
    elif any(word in title_lower for word in ['director', 'head of']):
        return 'director'
    elif any(word in title_lower for word in ['manager']):
        return 'manager'
    elif any(word in title_lower for word in ['lead', 'principal', 'staff']):
        return 'lead'
    elif any(word in title_lower for word in ['senior', 'sr.', 'sr ']):
        return 'senior'
    return 'mid'


# (title, years into the projection, promotion raise %)
CAREER_LADDERS = {
    'junior': [('Engineer II', 2, 15), ('Senior Engineer', 4, 20), ('Staff Engineer', 7, 25), ('Principal Engineer', 10, 20)],
    'mid': [('Senior Engineer', 2, 20), ('Staff Engineer', 5, 25), ('Principal Engineer', 8, 20)],
    'senior': [('Staff Engineer', 3, 25), ('Principal Engineer', 6, 20)],
    'lead': [('Principal Engineer', 3, 20), ('Distinguished Engineer', 6, 25)],
    'manager': [('Senior Engineering Manager', 3, 20), ('Director of Engineering', 6, 25)],
    'director': [('VP of Engineering', 4, 25)],
}


def suggest_milestones(job_title: str) -> List[CareerMilestone]:
    """Typical promotion milestones for a title; returned for display, never applied."""
    ladder = CAREER_LADDERS.get(normalize_job_title(job_title), CAREER_LADDERS['mid'])
    return [
        CareerMilestone(
            year=years,
            title=title,
            salary_bump_pct=Decimal(raise_pct),
            note='Typical promotion timeline for this level.',
        )
        for title, years, raise_pct in ladder
        if years <= MAX_PROJECTION_YEARS
    ]


# ----------------------------------------------------------------------
# Cross-offer comparison
# ----------------------------------------------------------------------

def _scenario(job: Dict[str, Any], key: str) -> Dict[str, Any]:
    for scenario in job['scenarios']:
        if scenario['key'] == key:
            return scenario
    return job['scenarios'][0]


def _job_label(job: Dict[str, Any]) -> str:
    if job['company'] and job['job_title']:
        return f"{job['company']} ({job['job_title']})"
    return job['company'] or job['job_title'] or f"Offer {job['job_id']}"


def calculate_scenario_comparison(jobs: List[Dict[str, Any]], scenario_key: str = 'expected') -> Dict[str, Any]:
    """Rank projected offers by cumulative 10-year total comp for one scenario."""
    entries = []
    for job in jobs:
        scenario = _scenario(job, scenario_key)
        starting = scenario['ten_year']['salary'][0]
        ending = scenario['ten_year_ending_salary']
        growth = round((ending - starting) / starting * 100, 1) if starting > 0 else 0.0
        entries.append({
            'job_id': job['job_id'],
            'name': _job_label(job),
            'five_year_ending_total_comp': scenario['five_year_ending_total_comp'],
            'cumulative_total_comp_10_year': scenario['cumulative_total_comp_10_year'],
            'ten_year_salary_growth_pct': growth,
            'milestones_count': len(job['milestones']),
        })

    by_ten_year = sorted(entries, key=lambda e: e['cumulative_total_comp_10_year'], reverse=True)
    by_five_year = sorted(entries, key=lambda e: e['five_year_ending_total_comp'], reverse=True)
    comparison = {
        'scenario': scenario_key,
        'offers': by_ten_year,
        'highest_5_year': by_five_year[0]['job_id'] if entries else None,
        'highest_10_year': by_ten_year[0]['job_id'] if entries else None,
        'best_growth_rate': max(entries, key=lambda e: e['ten_year_salary_growth_pct'])['job_id'] if entries else None,
    }
    comparison['recommendations'] = _generate_comparison_recommendations(by_ten_year)
    return comparison


def _generate_comparison_recommendations(entries: List[Dict[str, Any]]) -> List[str]:
    recommendations = []
    if len(entries) >= 2:
        top, second = entries[0], entries[1]
        diff = top['cumulative_total_comp_10_year'] - second['cumulative_total_comp_10_year']
        recommendations.append(
            f"{top['name']} offers ${diff:,.0f} more total compensation over 10 years compared to {second['name']}."
        )

    for entry in entries:
        if entry['milestones_count'] >= 2:
            recommendations.append(
                f"{entry['name']} includes {entry['milestones_count']} career milestones, which can accelerate growth."
            )

    high_growth = [e['name'] for e in entries if e['ten_year_salary_growth_pct'] > 100]
    if high_growth:
        recommendations.append(f"Offers with >100% salary growth over 10 years: {', '.join(high_growth)}")
    return recommendations


def _build_analysis_summary(comparison: Dict[str, Any], jobs: List[Dict[str, Any]]) -> str:
    if not jobs:
        return 'Adjust raise assumptions and milestones to explore trade-offs.'
    by_id = {job['job_id']: job for job in jobs}
    best = by_id[comparison['highest_5_year']]
    return (
        'Based on the expected raise scenario, the highest projected 5-year ending total compensation is '
        f"{_job_label(best)}. Adjust raise assumptions and milestones to explore trade-offs."
    )


def project_career(
    offers: Iterable[Any],
    inputs: Optional[Mapping[str, Any]] = None,
    *,
    default_benefits: Decimal = DEFAULT_BENEFITS_VALUE,
) -> Dict[str, Any]:
    """Project every offer under all three raise scenarios."""
    coerced = []
    for offer in offers:
        if isinstance(offer, OfferInput):
            coerced.append(offer)
        elif isinstance(offer, Mapping):
            coerced.append(OfferInput.from_mapping(offer))
        else:
            raise InvalidInput('Offers must be OfferInput instances or mappings.', field='offers')
    if not coerced:
        raise InvalidInput('At least one offer is required for a career projection.', field='offers')

    parsed = inputs if isinstance(inputs, CareerProjectionInputs) else CareerProjectionInputs.from_mapping(
        inputs, [offer.job_id for offer in coerced]
    )
    jobs = [project_offer(offer, parsed, default_benefits=default_benefits) for offer in coerced]
    comparison = calculate_scenario_comparison(jobs)
    logger.debug('Projected career growth for %d offers', len(jobs))

    scenarios = parsed.raise_scenarios
    return {
        'assumptions': {
            'source': 'deterministic',
            'conservative_annual_raise_pct': float(scenarios.conservative_pct),
            'expected_annual_raise_pct': float(scenarios.expected_pct),
            'optimistic_annual_raise_pct': float(scenarios.optimistic_pct),
            'bonus_growth_pct': float(parsed.bonus_growth_pct),
            'equity_growth_pct': float(parsed.equity_growth_pct),
            'benefits_growth_pct': float(parsed.benefits_growth_pct),
            'rationale': FALLBACK_RATIONALE,
        },
        'milestones': [m.as_dict() for m in parsed.milestones],
        # Free text is only echoed so the narrative generator can reference it.
        'goals': {
            'career_goals': parsed.career_goals,
            'salary_goals': parsed.salary_goals,
            'notes': parsed.notes,
        },
        'jobs': jobs,
        'comparison': comparison,
        'analysis_summary': _build_analysis_summary(comparison, jobs),
        'recommendations': comparison['recommendations'],
        'recommendation': None,
    }
