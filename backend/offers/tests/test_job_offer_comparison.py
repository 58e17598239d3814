import logging
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from offers.models import JobOffer, SavedOfferComparison
from offers.tests.fixtures import JobOfferFactory, SavedOfferComparisonFactory, UserFactory


@pytest.mark.django_db
class TestJobOfferComparison:
    def setup_method(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.client.force_authenticate(self.user)
        self.offer_a = JobOfferFactory(
            owner=self.user,
            company_name='Axis Labs',
            role_title='Senior Engineer',
            location='Remote',
            base_salary=Decimal('150000'),
            bonus=Decimal('0'),
            benefits_value=Decimal('0'),
            cost_of_living_index=Decimal('100'),
        )
        self.offer_b = JobOfferFactory(
            owner=self.user,
            company_name='Northwind',
            role_title='Engineer',
            location='Somewhere cheaper',
            base_salary=Decimal('140000'),
            bonus=Decimal('0'),
            benefits_value=Decimal('0'),
            cost_of_living_index=Decimal('90'),
        )
        self.ids = [str(self.offer_a.id), str(self.offer_b.id)]

    def test_list_offers_excludes_archived_by_default(self):
        JobOfferFactory(owner=self.user, is_archived=True)
        JobOfferFactory()  # another user's offer

        resp = self.client.get(reverse('job-offers'))
        assert resp.status_code == 200
        results = resp.json()['results']
        assert {row['job_id'] for row in results} == set(self.ids)
        assert isinstance(results[0]['base_salary'], float)

        resp = self.client.get(f"{reverse('job-offers')}?archived=true")
        assert len(resp.json()['results']) == 1

    def test_requires_authentication(self):
        resp = APIClient().get(reverse('job-offers'))
        assert resp.status_code in (401, 403)

    def test_compare_uses_stored_cost_of_living(self):
        resp = self.client.post(reverse('job-offer-compare'), {'job_ids': self.ids}, format='json')
        assert resp.status_code == 200
        body = resp.json()
        assert body['ranking'] == [self.ids[1], self.ids[0]]
        rows = {row['job_id']: row for row in body['offers']}
        assert rows[self.ids[0]]['financial_score'] == pytest.approx(96.43)
        assert rows[self.ids[1]]['financial_score'] == 100.0
        assert body['inputs']['col_index_by_job_id'] == {self.ids[0]: 100.0, self.ids[1]: 90.0}
        assert 'narrative_source' not in body

    def test_compare_request_overrides_win(self):
        resp = self.client.post(
            reverse('job-offer-compare'),
            {'job_ids': self.ids, 'col_index_by_job_id': {self.ids[1]: 100}},
            format='json',
        )
        assert resp.status_code == 200
        assert resp.json()['ranking'][0] == self.ids[0]

    def test_compare_rejects_zero_col_index_naming_offer(self):
        resp = self.client.post(
            reverse('job-offer-compare'),
            {'job_ids': self.ids, 'col_index_by_job_id': {self.ids[1]: 0}},
            format='json',
        )
        assert resp.status_code == 400
        error = resp.json()['error']
        assert error['code'] == 'invalid_input'
        assert error['details'] == {'field': 'col_index', 'job_id': self.ids[1]}

    def test_compare_rejects_single_offer(self):
        resp = self.client.post(reverse('job-offer-compare'), {'job_ids': self.ids[:1]}, format='json')
        assert resp.status_code == 400
        assert resp.json()['error']['details']['field'] == 'offers'

    def test_compare_unknown_offer_is_not_found(self):
        other = JobOfferFactory()
        resp = self.client.post(
            reverse('job-offer-compare'),
            {'job_ids': [self.ids[0], str(other.id)]},
            format='json',
        )
        assert resp.status_code == 404
        assert resp.json()['error']['details']['job_id'] == str(other.id)

    def test_compare_with_narrative_falls_back_without_api_key(self, settings):
        settings.GEMINI_API_KEY = ''
        resp = self.client.post(
            reverse('job-offer-compare'),
            {'job_ids': self.ids, 'include_narrative': True},
            format='json',
        )
        assert resp.status_code == 200
        assert resp.json()['narrative_source'] == 'template'

    def test_update_compensation_clamps_and_infers_col(self, caplog):
        url = reverse('job-offer-comp', kwargs={'offer_id': self.offer_a.id})
        with caplog.at_level(logging.WARNING, logger='offers.compensation'):
            resp = self.client.put(
                url,
                {'bonus': -500, 'location': 'Seattle, WA', 'work_mode': 'Hybrid 3 days'},
                format='json',
            )
        assert resp.status_code == 200
        clamp_logs = [r.getMessage() for r in caplog.records if r.name == 'offers.compensation']
        assert any('bonus' in msg and str(self.offer_a.id) in msg for msg in clamp_logs)
        self.offer_a.refresh_from_db()
        assert self.offer_a.bonus == 0
        assert self.offer_a.work_mode == 'hybrid'
        assert self.offer_a.cost_of_living_index == Decimal('145')

    def test_update_compensation_rejects_zero_col_index(self):
        url = reverse('job-offer-comp', kwargs={'offer_id': self.offer_a.id})
        resp = self.client.put(url, {'cost_of_living_index': 0}, format='json')
        assert resp.status_code == 400
        error = resp.json()['error']
        assert error['code'] == 'invalid'
        assert 'cost_of_living_index' in error['details']
        assert error['message'] == error['messages'][0]
        assert error['message'].startswith('Cost of living index:')

    def test_missing_offer_uses_error_envelope(self):
        url = reverse('job-offer-archive', kwargs={'offer_id': self.offer_a.id + 1000})
        resp = self.client.post(url, {}, format='json')
        assert resp.status_code == 404
        assert resp.json()['error']['code'] == 'not_found'

    def test_unauthenticated_requests_get_401_envelope(self):
        resp = APIClient().post(reverse('job-offer-compare'), {'job_ids': self.ids}, format='json')
        assert resp.status_code == 401
        error = resp.json()['error']
        assert error['code'] == 'not_authenticated'
        assert error['messages'] == [error['message']]
        assert 'details' not in error

    def test_archive_offer(self):
        url = reverse('job-offer-archive', kwargs={'offer_id': self.offer_b.id})
        resp = self.client.post(url, {'reason': 'declined comp'}, format='json')
        assert resp.status_code == 200
        self.offer_b.refresh_from_db()
        assert self.offer_b.is_archived is True
        assert self.offer_b.archived_reason == 'declined comp'
        assert self.offer_b.archived_at is not None

        resp = self.client.post(reverse('job-offer-compare'), {'job_ids': self.ids}, format='json')
        rows = {row['job_id']: row for row in resp.json()['offers']}
        assert rows[self.ids[1]]['archived'] is True

    def test_col_index_lookup(self):
        resp = self.client.get(reverse('job-offer-col-index'), {'location': 'Austin, TX'})
        assert resp.status_code == 200
        assert resp.json()['col_index'] == 118.0

    def test_career_projection(self):
        resp = self.client.post(
            reverse('job-offer-career-projection'),
            {'job_ids': self.ids, 'inputs': {'milestones': [{'year': 3, 'title': 'Staff', 'salary_bump_pct': 15}]}},
            format='json',
        )
        assert resp.status_code == 200
        result = resp.json()['result']
        assert len(result['jobs']) == 2
        assert result['narrative_source'] == 'template'
        expected = next(s for s in result['jobs'][0]['scenarios'] if s['key'] == 'expected')
        assert expected['ten_year']['title_by_year'][3] == 'Staff'

    def test_career_projection_rejects_bad_milestone_year(self):
        resp = self.client.post(
            reverse('job-offer-career-projection'),
            {'job_ids': self.ids, 'inputs': {'milestones': [{'year': 12}]}},
            format='json',
        )
        assert resp.status_code == 400
        assert resp.json()['error']['details']['field'] == 'milestones[0].year'

    def test_saved_comparison_round_trip(self):
        resp = self.client.post(
            reverse('saved-offer-comparisons'),
            {'name': 'Spring offers', 'job_ids': self.ids, 'inputs': {'weights': {'financial_weight': 0.8}}},
            format='json',
        )
        assert resp.status_code == 201
        saved = resp.json()['result']
        assert saved['inputs']['weights']['financial_weight'] == 0.8
        assert saved['inputs']['col_index_by_job_id'][self.ids[1]] == 90.0
        assert saved['result']['ranking'] == [self.ids[1], self.ids[0]]

        # Replaying the stored inputs reproduces the stored result.
        replay = self.client.post(
            reverse('job-offer-compare'),
            {'job_ids': self.ids, **saved['inputs']},
            format='json',
        ).json()
        replay.pop('inputs')
        assert replay == saved['result']

        resp = self.client.get(reverse('saved-offer-comparisons'))
        assert [row['id'] for row in resp.json()['results']] == [saved['id']]

        detail = reverse('saved-offer-comparison-detail', kwargs={'comparison_id': saved['id']})
        assert self.client.get(detail).json()['result']['name'] == 'Spring offers'
        assert self.client.delete(detail).status_code == 204
        assert not SavedOfferComparison.objects.filter(id=saved['id']).exists()

    def test_saved_comparison_needs_two_offers(self):
        resp = self.client.post(
            reverse('saved-offer-comparisons'),
            {'name': 'Lonely', 'job_ids': self.ids[:1]},
            format='json',
        )
        assert resp.status_code == 400
        assert 'job_ids' in resp.json()['error']['details']

    def test_saved_comparisons_are_private(self):
        other = SavedOfferComparisonFactory()
        detail = reverse('saved-offer-comparison-detail', kwargs={'comparison_id': other.id})
        assert self.client.get(detail).status_code == 404
        assert self.client.delete(detail).status_code == 404
        assert SavedOfferComparison.objects.filter(id=other.id).exists()

    def test_engine_never_writes_offers(self):
        before = list(JobOffer.objects.values().order_by('id'))
        self.client.post(reverse('job-offer-compare'), {'job_ids': self.ids}, format='json')
        self.client.post(reverse('job-offer-career-projection'), {'job_ids': self.ids}, format='json')
        assert list(JobOffer.objects.values().order_by('id')) == before
