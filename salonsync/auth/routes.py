from flask import Blueprint, jsonify, request, abort
from flask_login import login_user, logout_user, login_required, current_user
from salonsync import db, login_manager
from salonsync.errors import form_error_response
from salonsync.models.user import User, ROLE_CLIENT
from salonsync.auth.forms import LoginForm, RegistrationForm
from salonsync.utils.audit import log_audit

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@login_manager.unauthorized_handler
def unauthorized():
    abort(401, description='Authentication required.')


@auth_bp.route('/register', methods=['POST'])
def register():
    form = RegistrationForm()

    if not form.validate_on_submit():
        return form_error_response(form)

    user = User(
        email=form.email.data,
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        password=form.password.data,
        role=ROLE_CLIENT,
        phone=form.phone.data
    )

    db.session.add(user)
    db.session.commit()

    # Log the registration in audit trail
    log_audit('create', 'user', user.id, {
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'role': user.role,
    })

    return jsonify({'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()

    if not form.validate_on_submit():
        return form_error_response(form)

    user = User.query.filter_by(email=form.email.data).first()

    if not user or not user.check_password(form.password.data):
        log_audit('attempt', 'login', user.id if user else None, {
            'email': form.email.data,
            'reason': 'invalid_credentials'
        })
        return jsonify({'error': 'Invalid email or password.'}), 401

    if not user.is_active:
        log_audit('attempt', 'login', user.id, {
            'email': form.email.data,
            'reason': 'account_inactive'
        })
        return jsonify({'error': 'Your account is currently deactivated. Please contact support.'}), 403

    payload = request.get_json(silent=True) or {}
    remember = payload.get('remember_me') is True
    login_user(user, remember=remember)

    log_audit('perform', 'login', user.id, {
        'email': user.email,
        'user_agent': request.user_agent.string,
        'remember_me': remember
    })

    return jsonify({'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_audit('perform', 'logout', current_user.id, {'email': current_user.email})
    logout_user()
    return jsonify({'message': 'You have been logged out.'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': current_user.to_dict()})
