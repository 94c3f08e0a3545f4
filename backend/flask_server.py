"""
DishDash Restaurant - Flask Backend
Users, menu, carts, Stripe payments and admin analytics over MongoDB
"""

import atexit
import logging
from datetime import datetime, timedelta

from bson import ObjectId
from bson.errors import InvalidId
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from flask_mail import Mail
from pymongo.errors import DuplicateKeyError, PyMongoError
from werkzeug.exceptions import HTTPException
import stripe

from .analytics import order_stats_by_category, store_wide_stats, user_stats
from .billing import create_payment_intent
from .checkout import finalize_order
from .config import load_config
from .errors import ApiError, NotFound, PersistenceError, ValidationError
from .gate import IS_ADMIN, SELF, guard
from .notifications import ReceiptMailer
from .serializers import convert_objectid, delete_result, insert_result, update_result
from .store import Store
from .tokens import issue_token

MENU_FIELDS = ('name', 'category', 'price', 'recipe', 'image')

# ==================== HELPER FUNCTIONS ====================

def json_response(data, status=200):
    """Helper to create JSON response with proper ObjectId handling"""
    return jsonify(convert_objectid(data)), status

def get_store():
    return current_app.extensions['store']

def json_body():
    """Request body as a dict; anything else is a validation error"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data

# ==================== APP FACTORY ====================

def create_app(overrides=None, store=None, notifier=None):
    """
    Build the Flask app.

    ``store`` and ``notifier`` are normally built from the configuration;
    tests pass their own.
    """
    app = Flask(__name__)
    app.config.update(load_config())
    if overrides:
        app.config.update(overrides)

    CORS(app, origins=app.config['CORS_ORIGINS'], supports_credentials=True)

    if store is None:
        store = Store.connect(app.config['MONGO_URI'], app.config['DB_NAME'])
    store.ensure_indexes()

    mail = Mail(app)
    if notifier is None:
        notifier = ReceiptMailer.from_app(app, mail)

    app.extensions['store'] = store
    app.extensions['notifier'] = notifier

    register_hooks(app)
    register_routes(app)
    register_error_handlers(app)
    return app

def shutdown(app):
    """Drain queued receipts, then close the database connection"""
    notifier = app.extensions.get('notifier')
    if notifier is not None:
        notifier.shutdown(wait=True)
    app.extensions['store'].close()

# ==================== REQUEST LOGGING MIDDLEWARE ====================

def register_hooks(app):
    @app.before_request
    def log_request():
        """Log incoming requests"""
        current_app.logger.info('📥 %s %s', request.method, request.path)
        if request.args:
            current_app.logger.debug('📋 Query Params: %s', dict(request.args))

        auth_header = request.headers.get('Authorization')
        if auth_header:
            current_app.logger.debug('🔐 Authorization: %s...', auth_header[:30])

# ==================== ROUTES ====================

def register_routes(app):

    # ---------- root ----------

    @app.route('/')
    def root():
        return 'DishDash Restaurant app is running...'

    @app.route('/health')
    def health():
        """Health check endpoint"""
        get_store().ping()
        return json_response({
            'success': True,
            'message': 'DishDash backend is running',
            'timestamp': datetime.now().isoformat()
        })

    # ---------- auth ----------

    @app.route('/jwt', methods=['POST'])
    def create_token():
        """Issue an identity token for the claims in the body"""
        claims = json_body()
        if not claims.get('email'):
            raise ValidationError('email is required')

        token = issue_token(
            claims,
            current_app.config['ACCESS_TOKEN_SECRET'],
            expires_in=timedelta(days=current_app.config['TOKEN_EXPIRES_DAYS']),
        )
        return json_response({'token': token})

    # ---------- users ----------

    @app.route('/users', methods=['GET'])
    @guard(IS_ADMIN)
    def get_users():
        return json_response(list(get_store().users.find()))

    @app.route('/users/admin/<email>', methods=['GET'])
    @guard(SELF, target='email')
    def check_admin(email):
        """Tell the caller whether they are an admin"""
        user = get_store().users.find_one({'email': email})
        admin = user is not None and user.get('role') == 'admin'
        return json_response({'admin': admin})

    @app.route('/users', methods=['POST'])
    def save_user():
        """Insert the user unless one with the same e-mail already exists"""
        user = json_body()
        email = user.get('email')
        if not email:
            raise ValidationError('email is required')

        # roles are granted by admins only
        fields = {k: v for k, v in user.items() if k not in ('_id', 'role')}
        try:
            result = get_store().users.update_one(
                {'email': email},
                {'$setOnInsert': fields},
                upsert=True,
            )
        except DuplicateKeyError:
            result = None

        if result is None or result.upserted_id is None:
            return json_response({'message': 'User already exists', 'insertedId': None})

        current_app.logger.info('✅ User created: %s', email)
        return json_response({'acknowledged': True, 'insertedId': result.upserted_id})

    @app.route('/users/admin/<id>', methods=['PATCH'])
    @guard(IS_ADMIN)
    def make_admin(id):
        result = get_store().users.update_one(
            {'_id': ObjectId(id)},
            {'$set': {'role': 'admin'}},
        )
        return json_response(update_result(result))

    @app.route('/users/<id>', methods=['DELETE'])
    @guard(IS_ADMIN)
    def delete_user(id):
        result = get_store().users.delete_one({'_id': ObjectId(id)})
        return json_response(delete_result(result))

    # ---------- menu ----------

    @app.route('/menu', methods=['GET'])
    def get_menu():
        return json_response(list(get_store().menu.find()))

    @app.route('/menu/<id>', methods=['GET'])
    def get_menu_item(id):
        return json_response(get_store().menu.find_one({'_id': ObjectId(id)}))

    @app.route('/menu', methods=['POST'])
    @guard(IS_ADMIN)
    def create_menu_item():
        item = json_body()
        item.pop('_id', None)
        result = get_store().menu.insert_one(item)
        return json_response(insert_result(result))

    @app.route('/menu/<id>', methods=['PATCH'])
    @guard(IS_ADMIN)
    def update_menu_item(id):
        data = json_body()
        updates = {field: data[field] for field in MENU_FIELDS if field in data}
        if not updates:
            raise ValidationError(f"Nothing to update, expected one of: {', '.join(MENU_FIELDS)}")

        result = get_store().menu.update_one({'_id': ObjectId(id)}, {'$set': updates})
        return json_response(update_result(result))

    @app.route('/menu/<id>', methods=['DELETE'])
    @guard(IS_ADMIN)
    def delete_menu_item(id):
        result = get_store().menu.delete_one({'_id': ObjectId(id)})
        return json_response(delete_result(result))

    # ---------- reviews ----------

    @app.route('/reviews', methods=['GET'])
    def get_reviews():
        return json_response(list(get_store().reviews.find()))

    # ---------- carts ----------

    @app.route('/carts', methods=['GET'])
    def get_cart():
        """Cart entries of the user given by ?email="""
        email = request.args.get('email')
        return json_response(list(get_store().carts.find({'email': email})))

    @app.route('/carts', methods=['POST'])
    def add_to_cart():
        entry = json_body()
        entry.pop('_id', None)
        result = get_store().carts.insert_one(entry)
        return json_response(insert_result(result))

    @app.route('/carts/<id>', methods=['DELETE'])
    def delete_cart_entry(id):
        result = get_store().carts.delete_one({'_id': ObjectId(id)})
        return json_response(delete_result(result))

    # ---------- payments ----------

    @app.route('/create-payment-intent', methods=['POST'])
    def payment_intent():
        data = json_body()
        client_secret = create_payment_intent(
            data.get('price'),
            current_app.config['STRIPE_SECRET_KEY'],
        )
        return json_response({'clientSecret': client_secret})

    @app.route('/payments', methods=['POST'])
    def save_payment():
        """Record a completed checkout and clear the user's paid-for cart entries"""
        payment = json_body()
        payment.pop('_id', None)
        result = finalize_order(get_store(), payment, current_app.extensions.get('notifier'))
        return json_response(result)

    @app.route('/payments/<email>', methods=['GET'])
    @guard(SELF, target='email')
    def get_payment_history(email):
        return json_response(list(get_store().payments.find({'email': email})))

    @app.route('/allPayments', methods=['GET'])
    @guard(IS_ADMIN)
    def get_all_payments():
        return json_response(list(get_store().payments.find()))

    @app.route('/allPayments/<id>', methods=['PATCH'])
    @guard(IS_ADMIN)
    def update_payment_status(id):
        data = json_body()
        if 'status' not in data:
            raise ValidationError('status is required')

        result = get_store().payments.update_one(
            {'_id': ObjectId(id)},
            {'$set': {'status': data['status']}},
        )
        return json_response(update_result(result))

    # ---------- stats ----------

    @app.route('/admin-stats', methods=['GET'])
    @guard(IS_ADMIN)
    def admin_stats():
        return json_response(store_wide_stats(get_store()))

    @app.route('/order-stats', methods=['GET'])
    @guard(IS_ADMIN)
    def order_stats():
        return json_response(order_stats_by_category(get_store()))

    @app.route('/user-stats/<email>', methods=['GET'])
    @guard(SELF, target='email')
    def get_user_stats(email):
        return json_response(user_stats(get_store(), email))

# ==================== ERROR HANDLERS ====================

def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def api_error(e):
        if isinstance(e, PersistenceError):
            current_app.logger.error('❌ %s', e.message)
        return json_response(e.to_dict(), e.status_code)

    @app.errorhandler(InvalidId)
    def invalid_id(e):
        return json_response({'success': False, 'message': 'Invalid id'}, 400)

    @app.errorhandler(PyMongoError)
    def database_error(e):
        current_app.logger.exception('❌ Database error: %s', e)
        return json_response({'success': False, 'message': PersistenceError.default_message}, 500)

    @app.errorhandler(stripe.StripeError)
    def payment_provider_error(e):
        current_app.logger.error('❌ Stripe error: %s', e)
        return json_response({'success': False, 'message': 'Payment provider error'}, 502)

    @app.errorhandler(HTTPException)
    def http_error(e):
        message = NotFound.default_message if e.code == 404 else e.description
        return json_response({'success': False, 'message': message}, e.code)

    @app.errorhandler(500)
    def server_error(e):
        return json_response({
            'success': False,
            'message': 'Internal server error'
        }, 500)

# ==================== RUN SERVER ====================

def main():
    """Entry point for the ``dishdash`` script and ``python -m backend``"""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app = create_app()
    atexit.register(shutdown, app)

    PORT = app.config['PORT']
    app.logger.info('DishDash Restaurant is running on port: %s', PORT)
    app.run(host='0.0.0.0', port=PORT, debug=app.config['DEBUG'])

if __name__ == '__main__':
    main()
