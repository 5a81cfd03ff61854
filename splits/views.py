from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
import json
import logging

from .change_feed import change_feed
from .decorators import (
    json_errors,
    rate_limit_claim,
    rate_limit_edit,
    rate_limit_join,
    rate_limit_poll,
    rate_limit_upload,
    rate_limit_view,
)
from .services import (
    ClaimService,
    ReceiptService,
    RosterService,
    SessionService,
    ValidationPipeline,
)

logger = logging.getLogger(__name__)

# Initialize services
receipt_service = ReceiptService()
session_service = SessionService()
roster_service = RosterService()
claim_service = ClaimService()
validator = ValidationPipeline()


def _json_body(request):
    if not request.body:
        return {}
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise json.JSONDecodeError("Expected an object", request.body.decode(errors='replace'), 0)
    return data


def _display_name(request, data):
    """Name from the request body, remembered for next time, else the one on file"""
    name = data.get('display_name')
    if name is not None and str(name).strip():
        name = validator.validate_display_name(name)
        request.identity.set_display_name(name)
        return name
    return request.identity.display_name


def _receipt_payload(receipt):
    payload = {
        'id': str(receipt.id),
        'owner_id': receipt.owner_id,
        'merchant_name': receipt.merchant_name,
        'address': receipt.address,
        'date_time': receipt.date_time,
        'subtotal': receipt.subtotal,
        'tax': receipt.tax,
        'tip': receipt.tip,
        'total': receipt.total,
        'items': receipt.items,
        'created_at': receipt.created_at,
    }
    warnings = getattr(receipt, 'warnings', None)
    if warnings is not None:
        payload['warnings'] = warnings
    return payload


def _session_payload(request, split_session):
    user_context = request.user_context(split_session)
    payload = split_session.as_row()
    payload['is_host'] = user_context.is_host
    return payload


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def identity(request):
    """Who the caller is; POST sets the display name used when joining"""
    if request.method == 'POST':
        data = _json_body(request)
        request.identity.set_display_name(validator.validate_display_name(data.get('display_name')))
    return JsonResponse(request.identity.as_dict())


@csrf_exempt
@rate_limit_edit
@require_http_methods(["POST"])
@json_errors
def create_receipt(request):
    receipt = receipt_service.save_receipt(_json_body(request), request.identity.user_id)
    return JsonResponse(_receipt_payload(receipt), status=201)


@csrf_exempt
@rate_limit_edit
@require_http_methods(["GET", "PUT"])
@json_errors
def receipt_detail(request, receipt_id):
    if request.method == 'PUT':
        receipt = receipt_service.update_receipt(receipt_id, _json_body(request), request.identity.user_id)
    else:
        receipt = receipt_service.get_receipt(receipt_id)
    return JsonResponse(_receipt_payload(receipt))


@csrf_exempt
@rate_limit_upload
@require_http_methods(["POST"])
@json_errors
def extract_receipt(request):
    """Read an uploaded receipt photo; the caller reviews the result before saving it"""
    image = request.FILES.get('image')
    record = receipt_service.extract(image.read() if image else b'')
    return JsonResponse(record.model_dump(mode='json'))


@csrf_exempt
@rate_limit_join
@require_http_methods(["POST"])
@json_errors
def create_session(request):
    data = _json_body(request)
    split_session = session_service.create_session(
        receipt_id=data.get('receipt_id'),
        host_id=request.identity.user_id,
        host_name=_display_name(request, data),
    )
    return JsonResponse(_session_payload(request, split_session), status=201)


@rate_limit_view
@require_http_methods(["GET"])
@json_errors
def session_by_code(request, code):
    split_session = session_service.find_session_by_code(code)
    return JsonResponse(_session_payload(request, split_session))


@csrf_exempt
@rate_limit_join
@require_http_methods(["POST"])
@json_errors
def join_by_code(request, code):
    data = _json_body(request)
    split_session, participant = roster_service.join_by_code(
        code, request.identity.user_id, _display_name(request, data)
    )
    return JsonResponse({
        'session': _session_payload(request, split_session),
        'participant': participant.as_row(),
    })


@rate_limit_view
@require_http_methods(["GET"])
@json_errors
def session_detail(request, session_id):
    """Session plus its receipt: everything a client needs to seed its mirror"""
    cursor = change_feed.latest_cursor()
    split_session = session_service.get_session(session_id)
    return JsonResponse({
        'cursor': cursor,
        'session': _session_payload(request, split_session),
        'receipt': _receipt_payload(split_session.receipt),
        'participants': [p.as_row() for p in roster_service.list(split_session.id)],
        'claims': [c.as_row() for c in claim_service.list_claims(split_session.id)],
    })


@csrf_exempt
@rate_limit_join
@require_http_methods(["POST"])
@json_errors
def join_session(request, session_id):
    data = _json_body(request)
    participant = roster_service.join(session_id, request.identity.user_id, _display_name(request, data))
    return JsonResponse({'participant': participant.as_row()})


@rate_limit_view
@require_http_methods(["GET"])
@json_errors
def participants(request, session_id):
    return JsonResponse({'participants': [p.as_row() for p in roster_service.list(session_id)]})


@rate_limit_view
@require_http_methods(["GET"])
@json_errors
def claims(request, session_id):
    return JsonResponse({'claims': [c.as_row() for c in claim_service.list_claims(session_id)]})


@csrf_exempt
@rate_limit_claim
@require_http_methods(["POST", "DELETE"])
@json_errors
def claim_item(request, session_id, item_index):
    user_id = request.identity.user_id
    if request.method == 'DELETE':
        claim_service.unclaim(session_id, item_index, user_id)
        return JsonResponse({'item_index': item_index, 'claimed': False})
    claim_service.claim(session_id, item_index, user_id)
    return JsonResponse({'item_index': item_index, 'claimed': True})


@csrf_exempt
@rate_limit_claim
@require_http_methods(["POST"])
@json_errors
def toggle_claim(request, session_id, item_index):
    claimed = claim_service.toggle(session_id, item_index, request.identity.user_id)
    return JsonResponse({'item_index': item_index, 'claimed': claimed})


@csrf_exempt
@rate_limit_edit
@require_http_methods(["POST"])
@json_errors
def session_status(request, session_id):
    data = _json_body(request)
    split_session = session_service.transition(session_id, data.get('status'), request.identity.user_id)
    return JsonResponse(_session_payload(request, split_session))


@rate_limit_poll
@require_http_methods(["GET"])
@json_errors
def session_changes(request, session_id):
    """Change feed page after ``since``; clients poll with the last cursor they applied"""
    split_session = session_service.get_session(session_id)
    try:
        since = int(request.GET.get('since', 0))
        limit = int(request.GET['limit']) if 'limit' in request.GET else None
    except ValueError:
        return JsonResponse({'error': 'since and limit must be whole numbers'}, status=400)
    if limit is not None and limit < 1:
        return JsonResponse({'error': 'limit must be positive'}, status=400)

    events = change_feed.poll(split_session.id, since=since, limit=limit)
    return JsonResponse({
        'events': [event.as_dict() for event in events],
        'cursor': events[-1].id if events else since,
    })


def ratelimit_exceeded(request, exception):
    """Handle rate limit exceeded responses"""
    return JsonResponse({
        'error': 'Rate limit exceeded. Please try again later.'
    }, status=429)
