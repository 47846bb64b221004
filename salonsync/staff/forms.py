from datetime import datetime
from wtforms import StringField, IntegerField, DateTimeField, DateField, FloatField
from wtforms.validators import DataRequired, InputRequired, Length, Optional, AnyOf, NumberRange, ValidationError
from salonsync.models.user import STAFF_STATUSES
from salonsync.models.availability import BLOCK_BREAK, BLOCK_LEAVE, BLOCK_OTHER
from salonsync.utils.forms import ApiForm, QueryForm, DATETIME_FORMATS


class TimeRangeMixin:
    """Checks that end_time comes after start_time"""

    def validate_end_time(self, end_time):
        if self.start_time.data and end_time.data <= self.start_time.data:
            raise ValidationError('End time must be after start time.')


class BlockTimeForm(TimeRangeMixin, ApiForm):
    """Form for blocking out unavailable time periods"""
    start_time = DateTimeField('Start Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    end_time = DateTimeField('End Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    reason = StringField('Reason (optional)', validators=[Optional(), Length(max=255)])
    block_type = StringField('Type', validators=[Optional(), AnyOf((BLOCK_BREAK, BLOCK_LEAVE, BLOCK_OTHER))])

    def validate_start_time(self, start_time):
        # Ensure start time is in the future
        if start_time.data <= datetime.now():
            raise ValidationError('Start time must be in the future.')


class StaffFilterForm(QueryForm):
    status = StringField('Status', validators=[Optional(), AnyOf(STAFF_STATUSES)])
    location_id = IntegerField('Location', validators=[Optional()])


class AvailabilityQueryForm(TimeRangeMixin, QueryForm):
    start_time = DateTimeField('Start Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    end_time = DateTimeField('End Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    location_id = IntegerField('Location', validators=[Optional()])
    exclude_appointment_id = IntegerField('Exclude Appointment', validators=[Optional()])
    service_id = IntegerField('Service', validators=[Optional()])


class AvailabilityBoardForm(TimeRangeMixin, QueryForm):
    """Several staff members at once; staff_ids is a comma separated list"""
    staff_ids = StringField('Staff Members', validators=[Optional()])
    start_time = DateTimeField('Start Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    end_time = DateTimeField('End Time', validators=[DataRequired()], format=DATETIME_FORMATS)
    location_id = IntegerField('Location', validators=[Optional()])

    def staff_id_list(self):
        return [int(part) for part in self.staff_ids.data.split(',') if part.strip()]

    def validate_staff_ids(self, staff_ids):
        if not staff_ids.data:
            return
        try:
            self.staff_id_list()
        except ValueError:
            raise ValidationError('Staff ids must be a comma separated list of numbers.')


class DateQueryForm(QueryForm):
    date = DateField('Date', validators=[DataRequired()])


class SlotQueryForm(QueryForm):
    date = DateField('Date', validators=[DataRequired()])
    service_id = IntegerField('Service', validators=[DataRequired()])
    location_id = IntegerField('Location', validators=[Optional()])


class ChangesQueryForm(QueryForm):
    since = FloatField('Since', validators=[InputRequired(), NumberRange(min=0)])
