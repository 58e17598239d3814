"""
Test fixtures and factories for creating test data.
Uses factory_boy for consistent test data generation.
"""
from decimal import Decimal

import factory
from django.contrib.auth import get_user_model
from factory.django import DjangoModelFactory

from offers.models import JobOffer, SavedOfferComparison

User = get_user_model()


class UserFactory(DjangoModelFactory):
    """Factory for creating test users"""
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f'user{n}')
    email = factory.Sequence(lambda n: f'user{n}@example.com')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True


class JobOfferFactory(DjangoModelFactory):
    """Factory for job offers"""
    class Meta:
        model = JobOffer

    owner = factory.SubFactory(UserFactory)
    company_name = factory.Sequence(lambda n: f'Company {n}')
    role_title = 'Software Engineer'
    location = 'Remote'
    work_mode = 'remote'
    base_salary = Decimal('120000')
    bonus = Decimal('10000')
    equity = Decimal('0')
    benefits_value = Decimal('0')
    cost_of_living_index = Decimal('100')


class SavedOfferComparisonFactory(DjangoModelFactory):
    """Factory for saved comparisons"""
    class Meta:
        model = SavedOfferComparison

    owner = factory.SubFactory(UserFactory)
    name = factory.Sequence(lambda n: f'Comparison {n}')
    job_ids = factory.LazyFunction(list)
    inputs = factory.LazyFunction(dict)
    result = factory.LazyFunction(dict)
