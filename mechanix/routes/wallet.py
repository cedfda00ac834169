"""
Mechanic wallet routes
"""
from flask import Blueprint, request

from mechanix.auth import require_auth, require_role
from mechanix.errors import respond
from mechanix.extensions import limiter
from mechanix.schemas import WalletQuery, WithdrawalRequest, parse_body, parse_query
from mechanix.services import get_services

wallet_bp = Blueprint('wallet', __name__)


@wallet_bp.route('', methods=['GET'])
@require_auth
@require_role('mechanic')
def get_wallet():
    """Balance plus a page of ledger entries, newest first."""
    query = parse_query(WalletQuery)
    return respond(get_services().ledger.wallet(request.user_id, page=query.page, limit=query.limit))


@wallet_bp.route('/withdraw', methods=['POST'])
@limiter.limit('10 per minute')
@require_auth
@require_role('mechanic')
def withdraw():
    body = parse_body(WithdrawalRequest)
    result = get_services().ledger.withdraw(request.user_id, body.amount, body.bank_details)
    return respond(result, status_code=201)
