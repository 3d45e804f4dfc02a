import logging
import os
from datetime import date

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider

from app.extensions import db, login_manager
from config import Config

logger = logging.getLogger(__name__)


class JSONProvider(DefaultJSONProvider):
    """Render dates as ISO strings instead of HTTP dates."""

    @staticmethod
    def default(o):
        if isinstance(o, date):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json = JSONProvider(app)
    os.makedirs(app.instance_path, exist_ok=True)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    from app.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # API clients authenticate on every request with HTTP Basic
    @login_manager.request_loader
    def load_user_from_request(req):
        auth = req.authorization
        if auth is None or auth.type != 'basic' or not auth.username:
            return None
        user = User.query.filter_by(username=auth.username).first()
        if user is not None and user.check_password(auth.password or ''):
            return user
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            'code': 'error.msg.not.authenticated',
            'message': 'Authentication required.',
            'status': 401,
        }), 401

    register_error_handlers(app)

    # Register blueprints
    from app.routes.cycles import cycles_bp
    from app.routes.funds import funds_bp
    from app.routes.groups import groups_bp

    app.register_blueprint(cycles_bp)
    app.register_blueprint(funds_bp)
    app.register_blueprint(groups_bp)

    from app.cli import register_commands, seed_transaction_processing_strategies
    register_commands(app)

    with app.app_context():
        db.create_all()
        seed_transaction_processing_strategies()

    return app


def register_error_handlers(app):
    from app.exceptions import SavingsGroupError

    @app.errorhandler(SavingsGroupError)
    def handle_savings_group_error(error):
        logger.warning('%s %s rejected: %s (%s)', request.method, request.path, error.code, error.message)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'code': 'error.msg.resource.not.found', 'message': 'Resource not found.',
                        'status': 404}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'code': 'error.msg.method.not.allowed', 'message': 'Method not allowed.',
                        'status': 405}), 405
