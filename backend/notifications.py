"""
Order confirmation e-mails.

Receipts are sent with Flask-Mail on a small background pool so a slow or
failing SMTP server never holds up, or fails, the checkout request.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from html import escape

from flask_mail import Message

logger = logging.getLogger(__name__)

RECEIPT_SUBJECT = 'DishDash Order Confirmation'

RECEIPT_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; color: #333;">
    <h2>Dear {name},</h2>
    <p>Thank you for your order!</p>
    <p>Your <strong>Transaction ID</strong>: {transaction_id}</p>
    <p>We would love to hear your feedback about our food. &#10084;&#65039;</p>
</div>
"""


def build_receipt(payment, sender=None):
    """Render the confirmation mail for a stored payment; needs an app context"""
    return Message(
        RECEIPT_SUBJECT,
        recipients=[payment['email']],
        sender=sender,
        body=f"Thank you for your order! Your transaction ID: {payment.get('transactionId', '')}",
        html=RECEIPT_TEMPLATE.format(
            name=escape(str(payment.get('name', ''))),
            transaction_id=escape(str(payment.get('transactionId', ''))),
        ),
    )


class ReceiptMailer:
    """Sends receipts through the app's Flask-Mail instance from a worker pool"""

    def __init__(self, app, mail, max_workers=2):
        self.app = app
        self.mail = mail
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='receipts')

    @classmethod
    def from_app(cls, app, mail):
        """Build a mailer, or return None when no mail account is configured"""
        if not app.config.get('MAIL_USERNAME') or not app.config.get('MAIL_PASSWORD'):
            logger.warning('EMAIL_USER/EMAIL_PASS not set, receipts are disabled')
            return None
        return cls(app, mail)

    def send(self, payment):
        with self.app.app_context():
            self.mail.send(build_receipt(payment, self.app.config.get('MAIL_DEFAULT_SENDER')))
        return payment['email']

    def dispatch(self, payment):
        """Queue a receipt; the returned future never raises into the caller"""
        future = self._executor.submit(self.send, dict(payment))
        future.add_done_callback(self._log_outcome)
        return future

    @staticmethod
    def _log_outcome(future):
        error = future.exception()
        if error is not None:
            logger.error('Email error: %s', error)
        else:
            logger.info('Email sent: %s', future.result())

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)
