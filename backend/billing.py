"""
Stripe payment intents.

The front end confirms the card charge itself; the backend only creates the
intent and hands back its client secret.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import stripe

from .errors import ValidationError

CURRENCY = 'usd'


def to_minor_units(price):
    """Dollar amount to a whole number of cents, rounding half up"""
    if isinstance(price, bool) or price is None:
        raise ValidationError('price is required')
    try:
        amount = Decimal(str(price))
    except InvalidOperation as e:
        raise ValidationError('price must be a number') from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError('price must be a positive number')
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def create_payment_intent(price, api_key):
    """Create a USD card PaymentIntent and return its client secret"""
    amount = to_minor_units(price)
    intent = stripe.PaymentIntent.create(
        amount=amount,
        currency=CURRENCY,
        payment_method_types=['card'],
        api_key=api_key,
    )
    return intent.client_secret
