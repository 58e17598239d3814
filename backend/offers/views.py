"""
HTTP endpoints for offer comparison, career projections and saved comparisons.

The views resolve offers for the signed-in user, hand plain data to the engine
and serialize what comes back. Engine ``InvalidInput`` errors are rendered by
``offers.exceptions.custom_exception_handler``.
"""
import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from offers.career_growth_utils import project_career
from offers.compensation import DEFAULT_BENEFITS_VALUE, infer_cost_of_living_index, to_decimal
from offers.models import JobOffer, SavedOfferComparison
from offers.narrative import get_narrative_generator, with_narrative
from offers.offer_analysis import compare, compare_inputs
from offers.serializers import (
    CareerProjectionRequestSerializer,
    CompareRequestSerializer,
    JobOfferArchiveSerializer,
    JobOfferCompUpdateSerializer,
    JobOfferSerializer,
    SavedOfferComparisonListSerializer,
    SavedOfferComparisonSerializer,
)

logger = logging.getLogger(__name__)


class OfferNotFound(Exception):
    def __init__(self, job_id):
        super().__init__(job_id)
        self.job_id = job_id


def _default_benefits():
    return to_decimal(
        getattr(settings, 'OFFERS_DEFAULT_BENEFITS_VALUE', None),
        'OFFERS_DEFAULT_BENEFITS_VALUE',
        default=DEFAULT_BENEFITS_VALUE,
    )


def _not_found(message, **details):
    body = {'error': {'code': 'not_found', 'message': message}}
    if details:
        body['error']['details'] = details
    return Response(body, status=status.HTTP_404_NOT_FOUND)


def _load_offers(user, job_ids):
    """Return the user's offers in ``job_ids`` order."""
    numeric_ids = []
    for job_id in job_ids:
        try:
            numeric_ids.append(int(job_id))
        except (TypeError, ValueError):
            raise OfferNotFound(job_id)
    found = {offer.id: offer for offer in JobOffer.objects.filter(owner=user, id__in=numeric_ids)}
    offers = []
    for job_id, numeric_id in zip(job_ids, numeric_ids):
        if numeric_id not in found:
            raise OfferNotFound(job_id)
        offers.append(found[numeric_id])
    return offers


def _stored_col_indexes(offers):
    return {str(offer.id): float(offer.cost_of_living_index) for offer in offers}


def _merge_options(offers, options):
    """Seed per-offer COL indexes from the stored offers, then apply the request overrides."""
    merged = dict(options or {})
    col_indexes = _stored_col_indexes(offers)
    col_indexes.update(merged.get('col_index_by_job_id') or {})
    merged['col_index_by_job_id'] = col_indexes
    return merged


# ----------------------------------------------------------------------
# Offer source
# ----------------------------------------------------------------------

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_offers_list(request):
    archived = request.query_params.get('archived') == 'true'
    offers = JobOffer.objects.filter(owner=request.user, is_archived=archived).order_by('-updated_at')
    return Response({'results': JobOfferSerializer(offers, many=True).data}, status=status.HTTP_200_OK)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def job_offer_comp(request, offer_id):
    offer = JobOffer.objects.filter(id=offer_id, owner=request.user).first()
    if not offer:
        return _not_found('Offer not found.', job_id=str(offer_id))

    serializer = JobOfferCompUpdateSerializer(offer, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    extra = {}
    if 'location' in serializer.validated_data and 'cost_of_living_index' not in serializer.validated_data:
        extra['cost_of_living_index'] = infer_cost_of_living_index(serializer.validated_data['location'])
    offer = serializer.save(**extra)
    return Response({'result': JobOfferSerializer(offer).data}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_offer_archive(request, offer_id):
    offer = JobOffer.objects.filter(id=offer_id, owner=request.user).first()
    if not offer:
        return _not_found('Offer not found.', job_id=str(offer_id))

    serializer = JobOfferArchiveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    offer.is_archived = True
    offer.archived_reason = serializer.validated_data.get('reason') or 'declined'
    offer.archived_at = timezone.now()
    offer.save(update_fields=['is_archived', 'archived_reason', 'archived_at', 'updated_at'])
    return Response({'result': JobOfferSerializer(offer).data}, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cost_of_living_lookup(request):
    location = request.query_params.get('location', '')
    return Response(
        {'location': location, 'col_index': float(infer_cost_of_living_index(location))},
        status=status.HTTP_200_OK,
    )


# ----------------------------------------------------------------------
# Comparison + career projection
# ----------------------------------------------------------------------

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_offer_compare(request):
    serializer = CompareRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    job_ids = serializer.validated_data['job_ids']

    try:
        offers = _load_offers(request.user, job_ids)
    except OfferNotFound as exc:
        return _not_found('Offer not found.', job_id=str(exc.job_id))

    offer_inputs = [offer.to_offer_input() for offer in offers]
    options = _merge_options(offers, serializer.options())
    result = compare(offer_inputs, options, default_benefits=_default_benefits())
    result['inputs'] = compare_inputs(offer_inputs, options)

    if serializer.validated_data.get('include_narrative'):
        result = with_narrative(result, get_narrative_generator())
    return Response(result, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def job_offer_career_projection(request):
    serializer = CareerProjectionRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        offers = _load_offers(request.user, serializer.validated_data['job_ids'])
    except OfferNotFound as exc:
        return _not_found('Offer not found.', job_id=str(exc.job_id))

    projection = project_career(
        [offer.to_offer_input() for offer in offers],
        serializer.validated_data.get('inputs') or {},
        default_benefits=_default_benefits(),
    )
    projection = with_narrative(projection, get_narrative_generator())
    return Response({'result': projection}, status=status.HTTP_200_OK)


# ----------------------------------------------------------------------
# Saved comparisons
# ----------------------------------------------------------------------

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def saved_comparisons(request):
    if request.method == 'GET':
        qs = SavedOfferComparison.objects.filter(owner=request.user).order_by('-updated_at')
        return Response({'results': SavedOfferComparisonListSerializer(qs, many=True).data}, status=status.HTTP_200_OK)

    serializer = SavedOfferComparisonSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    job_ids = serializer.validated_data['job_ids']
    try:
        offers = _load_offers(request.user, job_ids)
    except OfferNotFound as exc:
        return _not_found('Offer not found.', job_id=str(exc.job_id))

    # The stored result is always recomputed from the stored inputs so replays match.
    offer_inputs = [offer.to_offer_input() for offer in offers]
    options = _merge_options(offers, serializer.validated_data.get('inputs'))
    inputs = compare_inputs(offer_inputs, options)
    result = compare(offer_inputs, inputs, default_benefits=_default_benefits())

    saved = serializer.save(owner=request.user, inputs=inputs, result=result)
    logger.info('Saved offer comparison %s for user %s', saved.id, request.user.pk)
    return Response({'result': SavedOfferComparisonSerializer(saved).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def saved_comparison_detail(request, comparison_id):
    saved = SavedOfferComparison.objects.filter(id=comparison_id, owner=request.user).first()
    if not saved:
        return _not_found('Saved comparison not found.')

    if request.method == 'DELETE':
        saved.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
    return Response({'result': SavedOfferComparisonSerializer(saved).data}, status=status.HTTP_200_OK)
