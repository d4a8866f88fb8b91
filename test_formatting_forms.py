"""
Tests for the display filters, form helpers and notification helpers.
"""

from datetime import datetime, timezone

import pytest
from werkzeug.datastructures import MultiDict

from services.forms import (
    build_rows, column, date_to_iso, field, form_values, iso_to_date, parse_int, parse_skills,
    to_bool, validate_employer, validate_person,
)
from services.notifications import (
    build_notification, format_role, recipient_label, sort_newest_first, unseen_count,
)
from utils.formatting import display_name, format_date, format_datetime, parse_datetime, status_class


def test_parse_datetime_variants():
    assert parse_datetime('2026-01-10T09:30:00Z') == datetime(2026, 1, 10, 9, 30, tzinfo=timezone.utc)
    assert parse_datetime('2026-01-10T09:30:00.123456789Z').microsecond == 123456
    assert parse_datetime('2026-01-10T09:30:00.5Z').microsecond == 500000
    assert parse_datetime('2026-01-10T09:30:00.12+01:00').microsecond == 120000
    assert parse_datetime('2026-01-10') == datetime(2026, 1, 10)
    assert parse_datetime('') is None
    assert parse_datetime('yesterday') is None


@pytest.mark.parametrize('value, expected', [
    ('2026-01-10T09:30:00Z', '10.01.2026'),
    ('0001-01-01T00:00:00Z', ''),
    ('1999-12-31', ''),
    (None, ''),
    ('garbage', ''),
])
def test_format_date(value, expected):
    assert format_date(value) == expected


def test_format_datetime():
    assert format_datetime('2026-01-10T09:30:00.500Z') == '10.01.2026 09:30'


def test_display_name_fallbacks():
    assert display_name({'full_name': 'Ana A', 'first_name': 'X'}) == 'Ana A'
    assert display_name({'name': 'Informatika'}) == 'Informatika'
    assert display_name({'first_name': 'Ana', 'last_name': None}) == 'Ana'
    assert display_name({'email': 'a@b.rs'}) == 'a@b.rs'
    assert display_name({'id': 42}) == '42'
    assert display_name(None) == ''


def test_status_class():
    assert status_class('Approved') == 'success'
    assert status_class('pending') == 'warning'
    assert status_class(None) == 'secondary'


def test_form_values_reads_each_field_type():
    fields = [
        field('name', 'Name'),
        field('active', 'Active', type='checkbox'),
        field('subjects', 'Subjects', type='multiselect'),
        field('note', 'Note', type='textarea'),
    ]
    form = MultiDict([('name', '  Ana  '), ('active', 'on'), ('subjects', 's1'), ('subjects', 's2'),
                      ('subjects', 's1')])
    assert form_values(fields, form) == {'name': 'Ana', 'active': True, 'subjects': ['s1', 's2'], 'note': ''}


def test_form_values_prefills_from_record():
    fields = [field('subjects', 'Subjects', type='multiselect'), field('year', 'Year', type='number')]
    record = {'subjects': [{'id': 's1', 'name': 'A'}, 's2'], 'year': 3}
    assert form_values(fields, record) == {'subjects': ['s1', 's2'], 'year': '3'}


def test_build_rows():
    columns = [column('name', 'Name'), column('kind', 'Kind', value=lambda r: r['kind'].upper(), badge=True)]
    rows = build_rows([{'id': 'r1', 'name': 'Ana', 'kind': 'a'}], columns, lambda r: ['edit'])
    assert rows == [{
        'id': 'r1',
        'cells': [{'value': 'Ana', 'badge': False, 'date': False}, {'value': 'A', 'badge': True, 'date': False}],
        'actions': ['edit'],
    }]


def test_date_helpers():
    assert date_to_iso('2026-01-10') == '2026-01-10T12:00:00.000Z'
    assert date_to_iso('2026-01-10', time='00:00:00.000') == '2026-01-10T00:00:00.000Z'
    assert date_to_iso('') == ''
    assert iso_to_date('2026-01-10T12:00:00Z') == '2026-01-10'
    assert iso_to_date(None) == ''


def test_small_converters():
    assert parse_int('7') == 7
    assert parse_int('x', 1) == 1
    assert to_bool('Yes') and to_bool(True) and not to_bool('') and not to_bool(None)
    assert parse_skills('Python, SQL\n python,SQL, ') == ['Python', 'SQL', 'python']
    assert parse_skills(['Go', ' Go ', '']) == ['Go']


def test_validate_person():
    values = {'first_name': 'Ana', 'last_name': 'Babic', 'email': 'ana@uns.ac.rs', 'password': 'lozinka12',
              'phone': '061', 'address': 'Bulevar 1', 'date_of_birth': '2000-01-01', 'jmbg': '0101000800012'}
    assert validate_person(values) == []
    assert validate_person(dict(values, password=''), require_password=False) == []
    assert validate_person(dict(values, password='kratka')) == ['Password must be at least 8 characters.']


def test_validate_employer_lists_missing_labels():
    errors = validate_employer({'firm_name': 'Firma', 'pib': '1'})
    assert errors == ['Registration number is required.', 'Company address is required.',
                      'Company phone is required.']


def test_build_notification():
    assert build_notification(' Ispit ', ' Pomeren ', 'role', 'STUDENT') == {
        'title': 'Ispit', 'content': 'Pomeren', 'recipient_type': 'role', 'recipient_value': 'STUDENT',
    }


@pytest.mark.parametrize('args, message', [
    (('', 'c', 'id', 'u1'), 'Title is required.'),
    (('t', '', 'id', 'u1'), 'Content is required.'),
    (('t', 'c', 'everyone', 'u1'), 'Choose who should receive the notification.'),
    (('t', 'c', 'major', ' '), 'Recipient is required.'),
    (('t', 'c', 'role', 'JANITOR'), 'Unknown role.'),
])
def test_build_notification_rejects(args, message):
    with pytest.raises(ValueError, match=message):
        build_notification(*args)


def test_notification_helpers():
    notifications = [
        {'id': 'a', 'created_at': '2026-01-01T00:00:00Z', 'seen': True},
        {'id': 'b', 'created_at': '2026-02-01T00:00:00Z'},
        {'id': 'c'},
    ]
    assert unseen_count(notifications) == 2
    assert unseen_count(None) == 0
    assert [n['id'] for n in sort_newest_first(notifications)] == ['b', 'a', 'c']


def test_recipient_label():
    assert format_role('STUDENTSKA_SLUZBA') == 'Studentska Sluzba'
    assert recipient_label({'recipient_type': 'role', 'recipient_value': 'STUDENTSKA_SLUZBA'}) == \
        'Sent to every Studentska Sluzba'
    assert recipient_label({'recipient_type': 'major'}) == 'Sent to students of the Major'
    assert recipient_label({'recipient_type': 'department'}) == 'Sent to the whole Department'
    assert recipient_label({'recipient_type': 'id', 'recipient_value': 'u1'}) == 'Sent to you only'
