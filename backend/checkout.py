"""
Order finalization: record the payment, clear the paid-for cart entries,
and queue the receipt.

The two writes are not transactional. If the cart cleanup fails the payment
stays recorded and the error is reported in ``deleteResult``.
"""

import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

from .errors import PersistenceError, ValidationError
from .serializers import delete_result, insert_result

logger = logging.getLogger(__name__)


def parse_cart_ids(cart_ids):
    if cart_ids is None:
        return []
    if not isinstance(cart_ids, list):
        raise ValidationError('cartIds must be a list')
    invalid = [cid for cid in cart_ids if not ObjectId.is_valid(cid)]
    if invalid:
        raise ValidationError(f"Invalid cart id: {invalid[0]}")
    return [ObjectId(cid) for cid in cart_ids]


def finalize_order(store, payment, notifier=None):
    """
    Persist ``payment`` verbatim, bulk-delete its cart entries and hand the
    receipt to ``notifier``. Returns ``{'paymentResult', 'deleteResult'}``.
    """
    if not isinstance(payment, dict):
        raise ValidationError('Payment must be a JSON object')
    cart_ids = parse_cart_ids(payment.get('cartIds'))

    document = dict(payment)
    try:
        result = store.payments.insert_one(document)
    except PyMongoError as e:
        logger.error('Payment insert failed: %s', e)
        raise PersistenceError('Could not save payment') from e
    payment_result = insert_result(result)

    try:
        deleted = store.carts.delete_many({'_id': {'$in': cart_ids}})
        cleanup = delete_result(deleted)
    except PyMongoError as e:
        logger.error('Cart cleanup failed for payment %s: %s', result.inserted_id, e)
        cleanup = {'acknowledged': False, 'deletedCount': 0, 'error': str(e)}

    if notifier is not None and payment.get('email'):
        try:
            notifier.dispatch(document)
        except Exception as e:
            logger.error('Could not queue receipt for %s: %s', payment.get('email'), e)

    return {'paymentResult': payment_result, 'deleteResult': cleanup}
