"""
Notification management routes for admin users.
"""

from flask import Blueprint, render_template, request, flash, redirect, url_for, current_app
from flask_login import login_required
from decorators import admin_required
from error_handler import ApiError
from services import get_api, log_activity
from services.notifications import (
    RECIPIENT_ROLES, RECIPIENT_TYPES, build_notification, format_role,
    recipient_label, sort_newest_first,
)
from services.loaders import load_list, load_record, lookup_list, run_action

bp = Blueprint('notifications', __name__)


def _full_name(person):
    return f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip()


def recipient_options(api):
    """Select options for each recipient type."""
    students = lookup_list(api.get_all_students, what='students')
    professors = lookup_list(api.get_all_professors, what='professors')
    return {
        'department': [(str(d['id']), d.get('name', '')) for d in lookup_list(api.get_all_departments, what='departments') if d.get('id')],
        'major': [(str(m['id']), m.get('name', '')) for m in lookup_list(api.get_all_majors, what='majors') if m.get('id')],
        'role': list(RECIPIENT_ROLES),
        'id': (
            [(str(s['id']), f"{_full_name(s)} (Student)") for s in students if s.get('id')]
            + [(str(p['id']), f"{_full_name(p)} (Professor)") for p in professors if p.get('id')]
        ),
    }


def recipient_display(notification, options):
    """Human readable recipient: the department, major, role or person it went to."""
    recipient_type = notification.get('recipient_type')
    value = str(notification.get('recipient_value') or notification.get('recipient_id') or '')
    if recipient_type == 'role':
        return format_role(value)
    return dict(options.get(recipient_type, [])).get(value, value)


def _read_form():
    recipient_type = request.form.get('recipient_type', '')
    return {
        'title': request.form.get('title', '').strip(),
        'content': request.form.get('content', '').strip(),
        'recipient_type': recipient_type,
        'recipient_value': request.form.get(f'recipient_value_{recipient_type}', '').strip(),
    }


def _render_form(values, options, title, submit_label, errors=None):
    return render_template('admin/notification_form.html',
                           values=values,
                           options=options,
                           recipient_types=RECIPIENT_TYPES,
                           title=title,
                           submit_label=submit_label,
                           errors=errors or [])


@bp.route('/notifications')
@login_required
@admin_required
def notifications_list():
    api = get_api()
    notifications = sort_newest_first(load_list(api.get_all_notifications, what='notifications'))
    options = recipient_options(api)
    groups = {}
    for notification in notifications:
        notification['recipient_display'] = recipient_display(notification, options)
        groups.setdefault(notification.get('recipient_type') or 'id', []).append(notification)
    return render_template('admin/notifications.html', groups=groups,
                           recipient_types=RECIPIENT_TYPES, total=len(notifications))


@bp.route('/notifications/create', methods=['GET', 'POST'])
@login_required
@admin_required
def create_notification():
    api = get_api()
    options = recipient_options(api)
    if request.method == 'POST':
        values = _read_form()
        try:
            payload = build_notification(**values)
            api.create_notification(payload)
        except ValueError as e:
            return _render_form(values, options, 'Create Notification', 'Send Notification', errors=[str(e)])
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error creating notification: {e}")
            return _render_form(values, options, 'Create Notification', 'Send Notification', errors=[e.message])
        log_activity('create_notification', details={'recipient_type': payload['recipient_type'],
                                                     'recipient_value': payload['recipient_value']})
        flash('Notification sent.', 'success')
        return redirect(url_for('admin.notifications.notifications_list'))

    values = {'title': '', 'content': '', 'recipient_type': 'department', 'recipient_value': ''}
    return _render_form(values, options, 'Create Notification', 'Send Notification')


@bp.route('/notifications/<notification_id>')
@login_required
@admin_required
def notification_detail(notification_id):
    api = get_api()
    notification = load_record(api.get_notification_by_id, notification_id, what='notification')
    if notification is None:
        return redirect(url_for('admin.notifications.notifications_list'))
    notification['recipient_display'] = recipient_display(notification, recipient_options(api))
    return render_template('shared/notification_detail.html', notification=notification,
                           recipient=recipient_label(notification),
                           edit_url=url_for('admin.notifications.edit_notification', notification_id=notification_id),
                           back_url=url_for('admin.notifications.notifications_list'))


@bp.route('/notifications/edit/<notification_id>', methods=['GET', 'POST'])
@login_required
@admin_required
def edit_notification(notification_id):
    api = get_api()
    notification = load_record(api.get_notification_by_id, notification_id, what='notification')
    if notification is None:
        return redirect(url_for('admin.notifications.notifications_list'))
    options = recipient_options(api)

    if request.method == 'POST':
        values = _read_form()
        try:
            api.update_notification(notification_id, build_notification(**values))
        except ValueError as e:
            return _render_form(values, options, 'Edit Notification', 'Save Changes', errors=[str(e)])
        except ApiError as e:
            if e.status == 401:
                raise
            current_app.logger.error(f"Error updating notification {notification_id}: {e}")
            return _render_form(values, options, 'Edit Notification', 'Save Changes', errors=[e.message])
        log_activity('update_notification', details={'notification_id': notification_id})
        flash('Notification updated.', 'success')
        return redirect(url_for('admin.notifications.notifications_list'))

    values = {
        'title': notification.get('title', ''),
        'content': notification.get('content', ''),
        'recipient_type': notification.get('recipient_type') or 'id',
        'recipient_value': str(notification.get('recipient_value') or ''),
    }
    return _render_form(values, options, 'Edit Notification', 'Save Changes')


@bp.route('/notifications/<notification_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_notification(notification_id):
    run_action(get_api().delete_notification, notification_id,
               success='Notification deleted.', failure='Failed to delete notification',
               log_action='delete_notification', details={'notification_id': notification_id})
    return redirect(url_for('admin.notifications.notifications_list'))
