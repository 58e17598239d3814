from decimal import Decimal

import pytest

from offers.career_growth_utils import (
    DEFAULT_TITLE,
    CareerMilestone,
    StartingComp,
    build_timeline,
    normalize_job_title,
    project_career,
    suggest_milestones,
)
from offers.errors import InvalidInput


def _start(salary='100000', bonus='0', equity='0', benefits='0'):
    return StartingComp(Decimal(salary), Decimal(bonus), Decimal(equity), Decimal(benefits))


def _offer(job_id='a', salary=100000, **extra):
    data = {'job_id': job_id, 'company': f'Company {job_id}', 'job_title': 'Engineer', 'salary': salary, 'benefits': 0}
    data.update(extra)
    return data


def _scenario(job, key):
    return next(s for s in job['scenarios'] if s['key'] == key)


@pytest.mark.unit
def test_salary_compounds_yearly():
    timeline = build_timeline(_start(), raise_pct=Decimal('3'))
    assert timeline['years'] == list(range(11))
    assert timeline['salary'][0] == 100000.0
    assert timeline['salary'][1] == 103000.0
    assert timeline['salary'][5] == pytest.approx(115927.41)


@pytest.mark.unit
def test_milestone_leaves_earlier_years_untouched():
    plain = build_timeline(_start(), raise_pct=Decimal('3'))
    promoted = build_timeline(
        _start(),
        raise_pct=Decimal('3'),
        milestones=[CareerMilestone(year=3, title='Senior Engineer', salary_bump_pct=Decimal('10'))],
        initial_title='Engineer',
    )
    assert promoted['salary'][:3] == plain['salary'][:3]
    assert promoted['salary'][3] == pytest.approx(100000 * 1.03 ** 3 * 1.1, abs=0.01)
    assert promoted['title_by_year'][:3] == ['Engineer'] * 3
    assert promoted['title_by_year'][3:] == ['Senior Engineer'] * 8


@pytest.mark.unit
def test_same_year_milestones_stack_after_compounding():
    timeline = build_timeline(
        _start(),
        raise_pct=Decimal('3'),
        milestones=[
            CareerMilestone(year=2, salary_bump_pct=Decimal('10')),
            CareerMilestone(year=2, salary_bump_pct=Decimal('20'), title='Lead'),
        ],
    )
    assert timeline['salary'][2] == pytest.approx(100000 * 1.03 ** 2 * 1.1 * 1.2, abs=0.01)
    assert timeline['title_by_year'][1] == DEFAULT_TITLE
    assert timeline['title_by_year'][2] == 'Lead'


@pytest.mark.unit
def test_deep_cuts_floor_at_zero():
    timeline = build_timeline(_start(bonus='5000'), raise_pct=Decimal('-150'), bonus_growth_pct=Decimal('-10'))
    assert timeline['salary'][1] == 0.0
    assert all(value >= 0 for value in timeline['salary'])
    assert timeline['bonus'][1] == 4500.0


@pytest.mark.unit
def test_totals_are_monotonic_without_negative_rates():
    timeline = build_timeline(
        _start(bonus='10000', equity='20000', benefits='5000'),
        raise_pct=Decimal('2'),
        bonus_growth_pct=Decimal('1'),
        milestones=[CareerMilestone(year=4, salary_bump_pct=Decimal('15'))],
    )
    totals = timeline['total_comp']
    assert all(later >= earlier for earlier, later in zip(totals, totals[1:]))
    for i, total in enumerate(totals):
        parts = timeline['salary'][i] + timeline['bonus'][i] + timeline['equity'][i] + timeline['benefits'][i]
        assert total == parts


@pytest.mark.unit
def test_every_projected_total_equals_its_reported_parts():
    result = project_career([
        _offer('a', salary='100000.10', bonus='5000.20', equity='0.01', benefits='0.3'),
    ], {'bonus_growth_pct': 1.5, 'milestones': [{'year': 4, 'salary_bump_pct': 7}]})
    for scenario in result['jobs'][0]['scenarios']:
        for horizon in ('five_year', 'ten_year'):
            timeline = scenario[horizon]
            for i, total in enumerate(timeline['total_comp']):
                parts = timeline['salary'][i] + timeline['bonus'][i] + timeline['equity'][i] + timeline['benefits'][i]
                assert total == parts


@pytest.mark.unit
def test_projection_has_three_scenarios_with_sliced_horizons():
    result = project_career([_offer()])
    job = result['jobs'][0]
    assert [s['key'] for s in job['scenarios']] == ['conservative', 'expected', 'optimistic']
    assert [s['annual_raise_pct'] for s in job['scenarios']] == [2.0, 3.0, 5.0]

    expected = _scenario(job, 'expected')
    assert len(expected['five_year']['salary']) == 6
    assert len(expected['ten_year']['salary']) == 11
    assert expected['five_year']['total_comp'] == expected['ten_year']['total_comp'][:6]
    assert expected['five_year_ending_salary'] == pytest.approx(115927.41)
    assert expected['cumulative_total_comp_5_year'] == pytest.approx(sum(expected['ten_year']['total_comp'][1:6]))
    assert result['assumptions']['source'] == 'deterministic'
    assert result['recommendation'] is None


@pytest.mark.unit
def test_projection_is_idempotent():
    offers = [_offer('a'), _offer('b', salary=90000, bonus=10000)]
    inputs = {'raise_scenarios': {'expected_pct': 4}, 'milestones': [{'year': 2, 'salary_bump_pct': 10}]}
    assert project_career(offers, inputs) == project_career(offers, inputs)


@pytest.mark.unit
def test_year_zero_title_falls_back_to_placeholder():
    result = project_career([_offer(job_title='')])
    assert _scenario(result['jobs'][0], 'expected')['ten_year']['title_by_year'][0] == DEFAULT_TITLE


@pytest.mark.unit
@pytest.mark.parametrize('year', [0, 11, 2.5, 'soon'])
def test_milestone_year_must_be_in_range(year):
    with pytest.raises(InvalidInput) as excinfo:
        project_career([_offer()], {'milestones': [{'year': 1}, {'year': year}]})
    assert excinfo.value.field.startswith('milestones[1]')


@pytest.mark.unit
def test_per_offer_milestones_override_shared_ones():
    inputs = {
        'milestones': [{'year': 2, 'salary_bump_pct': 10}],
        'milestones_by_job_id': {'b': [{'year': 5, 'title': 'Staff', 'salary_bump_pct': 25}]},
    }
    result = project_career([_offer('a'), _offer('b')], inputs)
    jobs = {job['job_id']: job for job in result['jobs']}
    assert jobs['a']['milestones'][0]['year'] == 2
    assert jobs['b']['milestones'][0]['title'] == 'Staff'


@pytest.mark.unit
def test_starting_comp_override_replaces_only_given_parts():
    result = project_career(
        [_offer('a', bonus=5000)],
        {'starting_comp_by_job_id': {'a': {'salary': 120000}}},
    )
    ten = _scenario(result['jobs'][0], 'expected')['ten_year']
    assert ten['salary'][0] == 120000.0
    assert ten['bonus'][0] == 5000.0


@pytest.mark.unit
def test_unknown_offer_in_starting_comp_is_rejected():
    with pytest.raises(InvalidInput) as excinfo:
        project_career([_offer('a')], {'starting_comp_by_job_id': {'nope': {'salary': 1}}})
    assert excinfo.value.field == 'starting_comp_by_job_id'
    assert excinfo.value.job_id == 'nope'


@pytest.mark.unit
def test_empty_offer_list_is_rejected():
    with pytest.raises(InvalidInput):
        project_career([])


@pytest.mark.unit
def test_scenario_comparison_picks_highest_totals():
    result = project_career([_offer('a', salary=100000), _offer('b', salary=130000)])
    comparison = result['comparison']
    assert comparison['scenario'] == 'expected'
    assert comparison['highest_10_year'] == 'b'
    assert comparison['highest_5_year'] == 'b'
    assert [entry['job_id'] for entry in comparison['offers']] == ['b', 'a']
    assert 'more total compensation over 10 years' in result['recommendations'][0]
    assert 'Company b' in result['analysis_summary']


@pytest.mark.unit
@pytest.mark.parametrize('title, level', [
    ('Junior Developer', 'junior'),
    ('Senior Software Engineer', 'senior'),
    ('Staff Engineer', 'lead'),
    ('Engineering Manager', 'manager'),
    ('Director of Platform', 'director'),
    ('Software Engineer', 'mid'),
])
def test_normalize_job_title(title, level):
    assert normalize_job_title(title) == level


@pytest.mark.unit
def test_suggested_milestones_are_reported_but_not_applied():
    assert suggest_milestones('Junior Developer')[0].title == 'Engineer II'
    result = project_career([_offer(job_title='Software Engineer')])
    job = result['jobs'][0]
    assert job['suggested_milestones']
    assert job['milestones'] == []
    assert _scenario(job, 'expected')['ten_year']['salary'][2] == pytest.approx(100000 * 1.03 ** 2, abs=0.01)
