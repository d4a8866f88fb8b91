"""
Field specs, validation and rendering helpers shared by the entity pages.

Create/edit pages describe their inputs as a list of field dicts and render
them through shared/entity_form.html; list pages describe columns and row
actions and render through shared/entity_list.html.
"""

from flask import render_template

TRUE_VALUES = ('on', 'true', '1', 'yes')


def field(name, label, type='text', required=False, options=None, placeholder='', help_text='', **attrs):
    return {
        'name': name,
        'label': label,
        'type': type,
        'required': required,
        'options': options or [],
        'placeholder': placeholder,
        'help_text': help_text,
        'attrs': attrs,
    }


def column(key, label, value=None, badge=False, date=False):
    """value: optional callable(record) computing the cell instead of record[key]."""
    return {'key': key, 'label': label, 'value': value, 'badge': badge, 'date': date}


def action(label, url, method='get', style='outline-secondary', confirm=None, disabled=False):
    return {
        'label': label,
        'url': url,
        'method': method,
        'style': style,
        'confirm': confirm,
        'disabled': disabled,
    }


def guideline(title, text):
    return {'title': title, 'text': text}


def to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value or '').strip().lower() in TRUE_VALUES


def _selected_ids(source, name):
    """Ids picked in a multi-select, from a form or from a record's list of ids or objects."""
    if hasattr(source, 'getlist'):
        items = source.getlist(name)
    else:
        items = source.get(name) or []
    ids = []
    for item in items:
        value = item.get('id') if isinstance(item, dict) else item
        if value and str(value) not in ids:
            ids.append(str(value))
    return ids


def form_values(fields, source):
    """Read every field from a form (or a record when pre-filling an edit page)."""
    values = {}
    for f in fields:
        if f['type'] == 'multiselect':
            values[f['name']] = _selected_ids(source, f['name'])
            continue
        raw = source.get(f['name'])
        if f['type'] == 'checkbox':
            values[f['name']] = to_bool(raw)
        elif raw is None:
            values[f['name']] = ''
        else:
            values[f['name']] = str(raw).strip()
    return values


def build_rows(records, columns, actions_for=None):
    rows = []
    for record in records:
        cells = []
        for col in columns:
            value = col['value'](record) if col['value'] else record.get(col['key'])
            cells.append({'value': value, 'badge': col['badge'], 'date': col['date']})
        rows.append({
            'id': record.get('id'),
            'cells': cells,
            'actions': actions_for(record) if actions_for else [],
        })
    return rows


def render_entity_form(fields, values, title, description='', main_title='', submit_label='Save',
                       guidelines=None, back_url=None, back_label='Back', errors=None):
    return render_template(
        'shared/entity_form.html',
        fields=fields,
        values=values,
        title=title,
        description=description,
        main_title=main_title or title,
        submit_label=submit_label,
        guidelines=guidelines or [],
        back_url=back_url,
        back_label=back_label,
        errors=errors or [],
    )


def render_entity_list(title, columns, rows, description='', create_url=None, create_label='Create',
                       empty_message='No records found.', search=None):
    return render_template(
        'shared/entity_list.html',
        title=title,
        columns=columns,
        rows=rows,
        description=description,
        create_url=create_url,
        create_label=create_label,
        empty_message=empty_message,
        search=search,
    )


# Person fields shared by registration, students and professors

def person_fields(include_password=True):
    fields = [
        field('first_name', 'First name', required=True, minlength=2, maxlength=100),
        field('last_name', 'Last name', required=True, minlength=2, maxlength=100),
        field('email', 'Email', type='email', required=True),
    ]
    if include_password:
        fields.append(field('password', 'Password', type='password', required=True, minlength=8,
                            help_text='At least 8 characters.'))
    fields.extend([
        field('phone', 'Phone', type='tel', required=True),
        field('address', 'Address', required=True),
        field('date_of_birth', 'Date of birth', type='date', required=True),
        field('jmbg', 'JMBG', required=True, minlength=13, maxlength=13, help_text='13 digits.'),
    ])
    return fields


def validate_person(values, require_password=True):
    """Returns a list of error messages; empty when the values are acceptable."""
    errors = []
    if len(values.get('first_name', '')) < 2:
        errors.append('First name must be at least 2 characters.')
    if len(values.get('last_name', '')) < 2:
        errors.append('Last name must be at least 2 characters.')
    if not values.get('email'):
        errors.append('Email is required.')
    if require_password and len(values.get('password', '')) < 8:
        errors.append('Password must be at least 8 characters.')
    if not values.get('phone'):
        errors.append('Phone is required.')
    if not values.get('address'):
        errors.append('Address is required.')
    if not values.get('date_of_birth'):
        errors.append('Date of birth is required.')
    if len(values.get('jmbg', '')) != 13:
        errors.append('JMBG must be exactly 13 digits.')
    return errors


def date_to_iso(value, time='12:00:00.000'):
    """YYYY-MM-DD from a date input to the ISO timestamp the backend expects."""
    if not value:
        return ''
    return f"{value[:10]}T{time}Z"


def iso_to_date(value):
    """ISO timestamp back to YYYY-MM-DD for a date input."""
    if not value:
        return ''
    return str(value)[:10]


def parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


USER_TYPES = (
    ('STUDENT', 'Student'),
    ('PROFESSOR', 'Professor'),
    ('EMPLOYER', 'Employer'),
    ('CANDIDATE', 'Job Candidate'),
    ('ADMIN', 'Administrator'),
)


def employer_fields():
    return [
        field('firm_name', 'Company name', required=True),
        field('pib', 'PIB', required=True),
        field('maticni_broj', 'Registration number', required=True),
        field('delatnost', 'Business description', type='textarea'),
        field('firm_address', 'Company address', required=True),
        field('firm_phone', 'Company phone', type='tel', required=True),
    ]


def validate_employer(values):
    errors = []
    for f in employer_fields():
        if f['required'] and not values.get(f['name']):
            errors.append(f"{f['label']} is required.")
    return errors


def parse_skills(value):
    """Comma or newline separated skills, trimmed and without duplicates."""
    if isinstance(value, (list, tuple)):
        parts = value
    else:
        parts = str(value or '').replace('\n', ',').split(',')
    skills = []
    for part in parts:
        skill = str(part).strip()
        if skill and skill not in skills:
            skills.append(skill)
    return skills
