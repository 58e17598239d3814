"""
URL configuration for offer comparison endpoints.
"""
from django.urls import path

from offers import views

urlpatterns = [
    path('offers', views.job_offers_list, name='job-offers'),
    path('offers/compare', views.job_offer_compare, name='job-offer-compare'),
    path('offers/career-projection', views.job_offer_career_projection, name='job-offer-career-projection'),
    path('offers/col-index', views.cost_of_living_lookup, name='job-offer-col-index'),
    path('offers/comparisons', views.saved_comparisons, name='saved-offer-comparisons'),
    path('offers/comparisons/<int:comparison_id>', views.saved_comparison_detail, name='saved-offer-comparison-detail'),
    path('offers/<int:offer_id>/comp', views.job_offer_comp, name='job-offer-comp'),
    path('offers/<int:offer_id>/archive', views.job_offer_archive, name='job-offer-archive'),
]
