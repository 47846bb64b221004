from datetime import datetime
from wtforms import (
    StringField, TextAreaField, BooleanField, PasswordField, DecimalField, IntegerField,
    DateField, SelectMultipleField
)
from wtforms.validators import (
    DataRequired, Email, Length, Optional, NumberRange, AnyOf, ValidationError
)
from salonsync.models.user import User, STAFF_STATUSES
from salonsync.models.availability import BUFFER_SCOPES, SCOPE_GLOBAL
from salonsync.utils.forms import ApiForm, QueryForm


def provided(field):
    """Whether the field was present in the request body"""
    return bool(field.raw_data)


class StaffCreateForm(ApiForm):
    """Form for creating a new staff member"""
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=120)])
    first_name = StringField('First Name', validators=[DataRequired(), Length(min=1, max=50)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(min=1, max=50)])
    phone = StringField('Phone Number', validators=[Optional(), Length(max=20)])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8)])
    status = StringField('Status', validators=[Optional(), AnyOf(STAFF_STATUSES)])
    home_service = BooleanField('Provides Home Service')
    specialties = StringField('Specialties', validators=[Optional(), Length(max=255)])
    location_ids = SelectMultipleField('Locations', choices=[], coerce=int, validate_choice=False)

    def validate_email(self, email):
        user = User.query.filter_by(email=email.data).first()
        if user:
            raise ValidationError('Email already registered. Please use a different email.')


class StaffUpdateForm(ApiForm):
    """Partial update of a staff member; absent fields are left as they are"""
    first_name = StringField('First Name', validators=[Optional(), Length(min=1, max=50)])
    last_name = StringField('Last Name', validators=[Optional(), Length(min=1, max=50)])
    phone = StringField('Phone Number', validators=[Optional(), Length(max=20)])
    password = PasswordField('New Password', validators=[Optional(), Length(min=8)])
    status = StringField('Status', validators=[Optional(), AnyOf(STAFF_STATUSES)])
    home_service = BooleanField('Provides Home Service')
    is_active = BooleanField('Account Active')
    specialties = StringField('Specialties', validators=[Optional(), Length(max=255)])
    location_ids = SelectMultipleField('Locations', choices=[], coerce=int, validate_choice=False)


class LocationForm(ApiForm):
    name = StringField('Location Name', validators=[DataRequired(), Length(max=100)])
    address = StringField('Address', validators=[Optional(), Length(max=255)])
    is_home_service = BooleanField('Home Service')


class ServiceForm(ApiForm):
    """Form for creating a salon service"""
    name = StringField('Service Name', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('Description', validators=[Optional(), Length(max=500)])
    price = DecimalField('Price ($)', validators=[NumberRange(min=0)])
    duration_minutes = IntegerField('Duration (minutes)', validators=[
        DataRequired(),
        NumberRange(min=5, message='Service duration must be at least 5 minutes')
    ])
    is_active = BooleanField('Active')


class HolidayForm(ApiForm):
    """Form for adding salon holidays"""
    date = DateField('Date', validators=[DataRequired()])
    description = StringField('Description', validators=[DataRequired(), Length(max=255)])

    def validate_date(self, date):
        if date.data < datetime.now().date():
            raise ValidationError('Holiday date cannot be in the past.')


class BufferRuleForm(ApiForm):
    scope = StringField('Scope', validators=[DataRequired(), AnyOf(BUFFER_SCOPES)])
    scope_id = IntegerField('Scope Id', validators=[Optional()])
    before_minutes = IntegerField('Minutes Before', validators=[NumberRange(min=0, max=240)])
    after_minutes = IntegerField('Minutes After', validators=[NumberRange(min=0, max=240)])

    def validate_scope(self, scope):
        if scope.data != SCOPE_GLOBAL and self.scope_id.data is None:
            raise ValidationError('A scope id is required for location, service and staff rules.')


class StatsQueryForm(QueryForm):
    date_from = DateField('From', validators=[Optional()])
    date_to = DateField('To', validators=[Optional()])


class AuditLogFilterForm(QueryForm):
    action = StringField('Action', validators=[Optional()])
    entity_type = StringField('Entity Type', validators=[Optional()])
    user_id = IntegerField('User', validators=[Optional()])
    date_from = DateField('From', validators=[Optional()])
    date_to = DateField('To', validators=[Optional()])
    page = IntegerField('Page', default=1, validators=[Optional(), NumberRange(min=1)])
