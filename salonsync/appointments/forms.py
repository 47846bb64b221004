from datetime import datetime, timedelta
from flask import current_app
from wtforms import StringField, TextAreaField, IntegerField, DateTimeField, DateField
from wtforms.validators import DataRequired, Length, Optional, AnyOf, ValidationError
from salonsync.models.appointment import ALL_STATUSES
from salonsync.utils.forms import ApiForm, QueryForm, DATETIME_FORMATS


def _validate_booking_time(start_time):
    """Appointments must start in the future, at least the booking lead time from now"""
    lead = timedelta(minutes=current_app.config['BOOKING_LEAD_MINUTES'])
    if start_time.data <= datetime.now():
        raise ValidationError('Appointment time must be in the future.')
    if start_time.data <= datetime.now() + lead:
        raise ValidationError(f'Appointments must be booked at least {int(lead.total_seconds() // 60)} minutes in advance.')


class AppointmentForm(ApiForm):
    """Form for booking a new appointment"""
    client_id = IntegerField('Client', validators=[Optional()])
    staff_id = IntegerField('Staff Member', validators=[DataRequired()])
    service_id = IntegerField('Service', validators=[DataRequired()])
    location_id = IntegerField('Location', validators=[DataRequired()])
    start_time = DateTimeField('Appointment Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    notes = TextAreaField('Special Requests/Notes', validators=[Optional(), Length(max=500)])
    status = StringField('Status', validators=[Optional(), AnyOf(ALL_STATUSES)])

    def validate_start_time(self, start_time):
        _validate_booking_time(start_time)


class RescheduleForm(ApiForm):
    """Form for moving an appointment"""
    start_time = DateTimeField('New Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    staff_id = IntegerField('Staff Member', validators=[Optional()])
    location_id = IntegerField('Location', validators=[Optional()])

    def validate_start_time(self, start_time):
        _validate_booking_time(start_time)


class AppointmentStatusForm(ApiForm):
    """Form for updating appointment status"""
    status = StringField('Status', validators=[DataRequired(), AnyOf(ALL_STATUSES)])


class AppointmentFilterForm(QueryForm):
    client_id = IntegerField('Client', validators=[Optional()])
    staff_id = IntegerField('Staff Member', validators=[Optional()])
    location_id = IntegerField('Location', validators=[Optional()])
    date = DateField('Date', validators=[Optional()])
    status = StringField('Status', validators=[Optional(), AnyOf(ALL_STATUSES)])
