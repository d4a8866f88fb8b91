# Core Flask imports
from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app
from flask_login import login_required, current_user

# Application imports
from error_handler import ApiError, is_conflict_error
from services import get_api, home_for, log_activity
from services import auth_session
from services.forms import (
    USER_TYPES, date_to_iso, employer_fields, form_values, parse_skills,
    person_fields, validate_employer, validate_person,
)
from services.notifications import recipient_label, sort_newest_first, unseen_count

auth_blueprint = Blueprint('auth', __name__)


def _safe_redirect_target(target):
    """Only same-site paths are followed after login."""
    if target and target.startswith('/') and not target.startswith('//'):
        return target
    return None


@auth_blueprint.route('/')
def home():
    if current_user.is_authenticated:
        return redirect(url_for('auth.dashboard'))
    return render_template('shared/home.html')


@auth_blueprint.route('/login', methods=['GET', 'POST'])
def login():
    redirect_target = _safe_redirect_target(request.values.get('redirect'))
    if current_user.is_authenticated:
        return redirect(redirect_target or url_for('auth.dashboard'))

    if request.method == 'POST':
        email = request.form.get('email', '').strip()
        password = request.form.get('password', '')

        if not email or not password:
            flash('Email and password are required.', 'danger')
            return render_template('shared/login.html', email=email, redirect_target=redirect_target)

        try:
            response = get_api().login(email, password) or {}
        except ApiError as e:
            log_activity('login_failed', details={'email': email}, success=False, error_message=e.message)
            flash(e.message, 'danger')
            return render_template('shared/login.html', email=email, redirect_target=redirect_target)

        if not response.get('token') or not response.get('user'):
            current_app.logger.error(f"Login response for {email} is missing user or token")
            flash('Login failed. Please try again.', 'danger')
            return render_template('shared/login.html', email=email, redirect_target=redirect_target)

        remember = bool(request.form.get('remember'))
        user = auth_session.login(response['user'], response['token'], remember=remember)
        log_activity('login', details={'user_type': user.user_type}, user_id=user.id)
        flash(f'Welcome back, {user.full_name}!', 'success')
        return redirect(redirect_target or url_for('auth.dashboard'))

    return render_template('shared/login.html', email='', redirect_target=redirect_target)


@auth_blueprint.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for('auth.dashboard'))

    fields = person_fields()
    firm_fields = employer_fields()
    values = form_values(fields + firm_fields, request.form)
    values['user_type'] = request.form.get('user_type', '')
    values['skills'] = request.form.get('skills', '')

    if request.method == 'POST':
        errors = validate_person(values)
        if values['user_type'] not in dict(USER_TYPES):
            errors.append('Choose an account type.')
        if values['user_type'] == 'EMPLOYER':
            errors.extend(validate_employer(values))
        if errors:
            for error in errors:
                flash(error, 'danger')
            return render_template('shared/register.html', fields=fields, firm_fields=firm_fields,
                                   values=values, user_types=USER_TYPES)

        payload = {f['name']: values[f['name']] for f in fields}
        payload['user_type'] = values['user_type']
        payload['date_of_birth'] = date_to_iso(values['date_of_birth'])
        if values['user_type'] == 'EMPLOYER':
            payload.update({f['name']: values[f['name']] for f in firm_fields})
        elif values['user_type'] == 'CANDIDATE':
            payload['skills'] = parse_skills(values['skills'])

        try:
            response = get_api().register(payload) or {}
        except ApiError as e:
            if is_conflict_error(e):
                flash('An account with this email already exists.', 'danger')
            else:
                flash(e.message, 'danger')
            return render_template('shared/register.html', fields=fields, firm_fields=firm_fields,
                                   values=values, user_types=USER_TYPES)

        log_activity('register', details={'email': values['email'], 'user_type': values['user_type']})
        if response.get('token') and response.get('user'):
            auth_session.login(response['user'], response['token'])
            flash('Your account has been created.', 'success')
            return redirect(url_for('auth.dashboard'))

        flash('Your account has been created. Please log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('shared/register.html', fields=fields, firm_fields=firm_fields,
                           values=values, user_types=USER_TYPES)


@auth_blueprint.route('/logout')
def logout():
    if current_user.is_authenticated:
        user_id = current_user.id
        try:
            get_api().logout()
        except ApiError as e:
            current_app.logger.warning(f"Backend logout failed for user {user_id}: {e}")
        log_activity('logout', user_id=user_id)
    auth_session.logout()
    flash('You have been logged out.', 'info')
    return redirect(url_for('auth.login'))


@auth_blueprint.route('/dashboard')
@login_required
def dashboard():
    """Send each user type to its own dashboard."""
    target = home_for(current_user.user_type)
    if target != request.path:
        return redirect(target)
    return render_template('shared/dashboard.html')


@auth_blueprint.route('/dashboard/profile', methods=['GET', 'POST'])
@login_required
def profile():
    editable = ('first_name', 'last_name', 'phone', 'address')
    if request.method == 'POST':
        data = {key: request.form.get(key, '').strip() for key in editable}
        if len(data['first_name']) < 2 or len(data['last_name']) < 2:
            flash('First and last name must be at least 2 characters.', 'danger')
            return render_template('shared/profile.html', values=data)
        try:
            get_api().update_user_info(current_user.id, data)
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating profile for {current_user.id}: {e}")
            flash(f'Failed to update profile: {e.message}', 'danger')
            return render_template('shared/profile.html', values=data)
        auth_session.update_user(dict(data, id=current_user.id))
        log_activity('update_profile')
        flash('Profile updated.', 'success')
        return redirect(url_for('auth.profile'))

    values = {key: current_user.get(key, '') for key in editable}
    return render_template('shared/profile.html', values=values)


@auth_blueprint.route('/dashboard/user/notifications')
@login_required
def notifications():
    try:
        items = sort_newest_first(get_api().get_user_notifications(current_user.id))
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Error loading notifications for {current_user.id}: {e}")
        flash('Could not load notifications.', 'danger')
        items = []
    return render_template('shared/notifications.html', notifications=items, unseen=unseen_count(items))


@auth_blueprint.route('/dashboard/user/notifications/<notification_id>')
@login_required
def notification_detail(notification_id):
    api = get_api()
    try:
        notification = api.get_notification_by_id(notification_id)
    except ApiError as e:
        if e.status == 401:
            raise
        current_app.logger.error(f"Error loading notification {notification_id}: {e}")
        flash('Notification not found.', 'danger')
        return redirect(url_for('auth.notifications'))

    if notification and not notification.get('seen'):
        try:
            api.mark_notification_seen(notification_id)
            notification['seen'] = True
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.warning(f"Could not mark notification {notification_id} as seen: {e}")

    return render_template('shared/notification_detail.html', notification=notification,
                           recipient=recipient_label(notification or {}))
